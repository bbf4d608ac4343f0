from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..backend.audit import AuditLogger
from ..backend.client import BackendClient
from ..backend.resort_api import ResortImportApi
from ..models.config_models import WorkbenchConfig

"""Session context shared by the workflow services.

ImportSession bundles what one operator session needs: the configuration, the
endpoint wrapper, the audit sink and the placeholder URL cache. The cache is
explicit session state (initialized flag + force refresh) rather than a
module-level global.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "PlaceholderCache",
    "ImportSession",
]


class PlaceholderCache:
    """Placeholder image URLs, fetched once per session."""

    def __init__(self) -> None:
        self._urls: list[str] = []
        self.initialized = False

    def get(self, api: ResortImportApi, force_refresh: bool = False) -> list[str]:
        if force_refresh:
            self.invalidate()
        if self.initialized:
            return list(self._urls)
        urls = api.list_placeholders()
        self._urls = urls
        self.initialized = True
        logger.info(f"placeholder urls loaded count={len(urls)}")
        return list(urls)

    def invalidate(self) -> None:
        self._urls = []
        self.initialized = False


@dataclass
class ImportSession:
    config: WorkbenchConfig
    api: ResortImportApi
    audit: AuditLogger
    placeholders: PlaceholderCache = field(default_factory=PlaceholderCache)

    @classmethod
    def from_config(cls, config: WorkbenchConfig, client: BackendClient | None = None) -> ImportSession:
        client = client if client is not None else BackendClient(config.backend)
        return cls(
            config=config,
            api=ResortImportApi(client),
            audit=AuditLogger(client, config.operator_email, config.backend.audit_table),
        )
