from __future__ import annotations

from dataclasses import dataclass

"""Config dataclasses for the resort import workbench.

These are the typed results of resort_import.config.loader.load_config();
environment overrides (.env / process env) are already applied when a
WorkbenchConfig is handed to the services.
"""

DEFAULT_FUNCTION_NAME = "admin-bulk-import-resorts"
DEFAULT_AUDIT_TABLE = "admin_audit_log"
DEFAULT_BATCH_SIZE = 500
DEFAULT_TERRAIN_TOLERANCE = 5.0


@dataclass(frozen=True)
class BackendConfig:
    """Where the managed backend lives and how to authenticate against it."""
    url: str  # e.g. https://<project>.supabase.co
    function_name: str = DEFAULT_FUNCTION_NAME
    audit_table: str = DEFAULT_AUDIT_TABLE
    timeout_seconds: float | None = None  # None = transport default
    access_token: str | None = None  # RESORT_ADMIN_TOKEN
    anon_key: str | None = None  # RESORT_ANON_KEY (REST apikey header)

    @property
    def function_url(self) -> str:
        return f"{self.url.rstrip('/')}/functions/v1/{self.function_name}"

    def table_url(self, table: str) -> str:
        return f"{self.url.rstrip('/')}/rest/v1/{table}"


@dataclass(frozen=True)
class ImportSettings:
    """Tunables for matching, validation and commit."""
    batch_size: int = DEFAULT_BATCH_SIZE  # matcher / committer 共通
    terrain_tolerance_pct: float = DEFAULT_TERRAIN_TOLERANCE
    assign_placeholders: bool = True


@dataclass(frozen=True)
class WorkbenchConfig:
    """Root configuration object."""
    backend: BackendConfig
    settings: ImportSettings
    operator_email: str = "unknown"  # 監査ログの記録者
