from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from resort_import.backend.client import BackendError
from resort_import.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from resort_import.files.reader import UnsupportedFileError
from resort_import.logging.error_log import ErrorLogBuffer
from resort_import.logging.init import log_summary, setup_logging
from resort_import.models.config_models import DEFAULT_TERRAIN_TOLERANCE, WorkbenchConfig
from resort_import.models.workbench_row import RowStatus
from resort_import.services.committer import (
    CommitError,
    NothingToImportError,
    PushBlockedError,
    commit_workbench,
)
from resort_import.services.decisions import DecisionsError, apply_decisions, read_decisions
from resort_import.services.export import export_rows
from resort_import.services.ingest import ingest_file
from resort_import.services.matcher import MatcherError, check_against_db
from resort_import.services.progress import ProgressTracker
from resort_import.services.session import ImportSession
from resort_import.services.summary import render_commit_line, render_counts_line, strip_label
from resort_import.services.verification import assign_placeholders, bulk_verify, verify_resort
from resort_import.services.workbench import Workbench, WorkbenchError

"""CLI entrypoint.

Subcommands:
- inspect FILE                parse + validate only (no network)
- run FILE [options]          parse, edit, check against DB, apply decisions, export, push
- verify RESORT_ID            mark one resort verified (or --flag)
- bulk-verify ID [ID ...]     verify / flag many resorts
- assign-placeholders [URL]   assign placeholder cover images

Exit codes:
    0  success
    1  fatal (config, file, network)
    2  blocked (push gate, nothing to import, no valid rows)
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_BLOCKED = 2


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env with python-dotenv.

    override=True: .env の値で既存の環境変数を上書きする。
    """
    try:
        if path.exists():
            load_dotenv(dotenv_path=path, override=override)
    except OSError as e:  # pragma: no cover
        logging.getLogger("resort_import").warning(f"failed to load .env: {e}")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="resort-import", description="Resort bulk import workbench")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config path")
    sub = p.add_subparsers(dest="command", required=True)

    sp = sub.add_parser("inspect", help="Parse and validate a file without contacting the backend")
    sp.add_argument("file", type=Path)

    sp = sub.add_parser("run", help="Reconcile a file and optionally push it")
    sp.add_argument("file", type=Path)
    sp.add_argument(
        "--set",
        dest="edits",
        action="append",
        default=[],
        metavar="INDEX:FIELD=VALUE",
        help="Edit one field of one row before checking (repeatable)",
    )
    sp.add_argument("--check", action="store_true", help="Check rows against existing resorts")
    sp.add_argument("--decisions", type=Path, help="CSV with index,action columns")
    sp.add_argument("--export", type=Path, help="Write the workbench to .csv or .json")
    sp.add_argument("--push", action="store_true", help="Commit ready rows to the backend")
    sp.add_argument(
        "--refresh-placeholders", action="store_true", help="Re-fetch placeholder image URLs"
    )

    sp = sub.add_parser("verify", help="Verify (or flag) one resort")
    sp.add_argument("resort_id")
    sp.add_argument("--flag", action="store_true", help="Flag instead of verify")
    sp.add_argument("--notes", default=None)

    sp = sub.add_parser("bulk-verify", help="Verify (or flag) many resorts")
    sp.add_argument("resort_ids", nargs="+")
    sp.add_argument("--flag", action="store_true", help="Flag instead of verify")

    sp = sub.add_parser("assign-placeholders", help="Assign placeholder cover images")
    sp.add_argument("urls", nargs="*")
    sp.add_argument(
        "--from-listing", action="store_true", help="Use the backend's placeholder listing"
    )
    return p.parse_args(argv)


def _parse_edit(text: str) -> tuple[int, str, str]:
    """'3:lat=45.2' -> (3, 'lat', '45.2')"""
    head, sep, value = text.partition("=")
    index_text, colon, field = head.partition(":")
    if not sep or not colon or not field.strip():
        raise ValueError(f"invalid edit '{text}', expected INDEX:FIELD=VALUE")
    return int(index_text), field.strip(), value


def _report_rows(logger: logging.Logger, workbench: Workbench) -> None:
    for row in workbench.rows:
        if row.status is RowStatus.ERROR:
            for issue in row.errors:
                logger.warning(f"row {row.index} [error] {issue.field}: {issue.message}")
        elif row.status is RowStatus.WARNING:
            for issue in row.warnings:
                logger.warning(f"row {row.index} [warning] {issue.field}: {issue.message}")
            if row.is_duplicate and row.action is None:
                logger.warning(
                    f"row {row.index} [warning] {row.match_type.value} match with "
                    f"'{row.matched_resort_name}' ({row.matched_resort_id}) needs a decision"
                )
            elif row.is_dirty and row.checked:
                logger.warning(f"row {row.index} [warning] edited after check, re-run --check")


def _load_rows(logger: logging.Logger, path: Path, tolerance: float) -> Workbench | None:
    try:
        workbench, parsed = ingest_file(path, tolerance)
    except UnsupportedFileError as e:
        logger.error(f"file: {e}")
        return None
    if parsed.errors:
        error_log = ErrorLogBuffer()
        error_log.extend(parsed.errors)
        written = error_log.flush()
        logger.info(f"parse errors written to {written}")
    return workbench


def _inspect(logger: logging.Logger, args: argparse.Namespace) -> int:
    tolerance = DEFAULT_TERRAIN_TOLERANCE
    if args.config.exists():
        try:
            tolerance = load_config(args.config).settings.terrain_tolerance_pct
        except ConfigError as e:
            logger.error(f"config: {e}")
            return EXIT_FATAL
    workbench = _load_rows(logger, args.file, tolerance)
    if workbench is None:
        return EXIT_FATAL
    _report_rows(logger, workbench)
    log_summary(strip_label(render_counts_line(workbench.counts())))
    return EXIT_SUCCESS if len(workbench) else EXIT_BLOCKED


def _run(logger: logging.Logger, args: argparse.Namespace, cfg: WorkbenchConfig) -> int:
    workbench = _load_rows(logger, args.file, cfg.settings.terrain_tolerance_pct)
    if workbench is None:
        return EXIT_FATAL
    if not len(workbench):
        logger.error("no valid resort rows found")
        return EXIT_BLOCKED

    for edit_text in args.edits:
        try:
            index, field, value = _parse_edit(edit_text)
            workbench.edit(index, field, value)
        except (ValueError, WorkbenchError) as e:
            logger.error(f"edit: {e}")
            return EXIT_FATAL

    session = ImportSession.from_config(cfg)
    exit_code = EXIT_SUCCESS

    if args.check:
        try:
            with ProgressTracker("Checking") as progress:
                check_against_db(workbench, session.api, cfg.settings.batch_size, progress.callback)
        except MatcherError as e:
            # 成功済みチャンクの結果は保持
            logger.error(f"check: {e}")
            exit_code = EXIT_FATAL

    if args.decisions is not None:
        try:
            decisions, rejects = read_decisions(args.decisions)
        except DecisionsError as e:
            logger.error(f"decisions: {e}")
            return EXIT_FATAL
        for reason in rejects:
            logger.warning(f"decisions: {reason}")
        applied, _ = apply_decisions(workbench, decisions)
        logger.info(f"applied {applied} decisions")

    _report_rows(logger, workbench)

    if args.export is not None:
        count = export_rows(workbench.rows, args.export)
        logger.info(f"exported {count} rows to {args.export}")

    log_summary(strip_label(render_counts_line(workbench.counts())))

    if not args.push or exit_code != EXIT_SUCCESS:
        return exit_code

    try:
        with ProgressTracker("Importing") as progress:
            result = commit_workbench(
                workbench,
                session,
                force_refresh_placeholders=args.refresh_placeholders,
                progress_callback=progress.callback,
                metrics_callback=lambda m: progress.set_postfix(
                    rows=m.new_rows + m.updates, sec=f"{m.elapsed_seconds:.1f}"
                ),
            )
    except (PushBlockedError, NothingToImportError) as e:
        logger.error(f"push: {e}")
        return EXIT_BLOCKED
    except CommitError as e:
        logger.error(f"push: {e}")
        log_summary(strip_label(render_commit_line(e.result)))
        return EXIT_FATAL
    log_summary(strip_label(render_commit_line(result)))
    return EXIT_SUCCESS


def _maintenance(logger: logging.Logger, args: argparse.Namespace, cfg: WorkbenchConfig) -> int:
    session = ImportSession.from_config(cfg)
    try:
        if args.command == "verify":
            verify_resort(session, args.resort_id, not args.flag, args.notes)
        elif args.command == "bulk-verify":
            bulk_verify(session, args.resort_ids, not args.flag)
        else:
            urls = list(args.urls)
            if args.from_listing:
                urls += session.placeholders.get(session.api)
            assign_placeholders(session, urls)
    except ValueError as e:
        logger.error(f"{args.command}: {e}")
        return EXIT_BLOCKED
    except BackendError as e:
        logger.error(f"{args.command}: {e}")
        return EXIT_FATAL
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    # None のときのみ sys.argv を読む (テストから [] を渡せるように)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    if args.debug:
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)

    if args.command == "inspect":
        return _inspect(logger, args)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.command == "run":
        return _run(logger, args, cfg)
    return _maintenance(logger, args, cfg)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
