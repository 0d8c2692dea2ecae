from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from schemarecon import app
from schemarecon.config import ConfigurationError, configure_logging, parse_log_level
from schemarecon.errors import SchemaReconError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compare and reconcile data source schemas")
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (defaults to SCHEMARECON_LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        help="Write the resulting document to this file instead of stdout",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build-ir", help="Build an IR document from a data source")
    build.add_argument("--source-type", required=True, help="file, db or memory")
    build.add_argument("--format", required=True, help="json, csv, sqlite, mysql, postgres...")
    build.add_argument("--path", help="File path, SQLite path or database URL")
    build.add_argument(
        "--config",
        help="Source configuration as inline JSON or @path to a JSON file",
    )

    compare = subparsers.add_parser("compare", help="Compare two IR documents")
    compare.add_argument("ir_a", help="IR document A (path, or - for stdin)")
    compare.add_argument("ir_b", help="IR document B (path, or - for stdin)")
    compare.add_argument("--strategy", choices=("structural", "semantic", "hybrid"))
    compare.add_argument("--threshold", type=float, help="Semantic match threshold in [0, 1]")
    compare.add_argument(
        "--ignore-field",
        action="append",
        default=[],
        dest="ignore_fields",
        help="Field name or entity.field path to ignore (repeatable)",
    )

    propose = subparsers.add_parser("propose", help="Propose a resolution plan for a comparison")
    propose.add_argument("comparison", help="Comparison document (path, or - for stdin)")
    propose.add_argument("--strategy", choices=("conservative", "balanced", "aggressive"))
    propose.add_argument("--prefer-source", choices=("a", "b", "merge"))
    propose.add_argument(
        "--auto-resolve-threshold",
        type=float,
        help="Minimum similarity for automatic resolution under the balanced strategy",
    )

    apply = subparsers.add_parser("apply", help="Apply a resolution plan to a schema store")
    apply.add_argument("plan", help="Plan document (path, or - for stdin)")
    apply.add_argument("--dry-run", action="store_true", help="Only report what would change")
    apply.add_argument("--no-backup", action="store_true", help="Skip the pre-apply backup")
    apply.add_argument("--stop-on-failure", action="store_true")
    apply.add_argument("--timeout", type=float, help="Abort after this many seconds")
    apply.add_argument("--store-uri", help="Database URI of the schema store")

    rollback = subparsers.add_parser("rollback", help="Restore a pre-apply backup")
    rollback.add_argument("backup_ref", help="Backup reference reported by apply")
    rollback.add_argument("--store-uri", help="Database URI of the schema store")

    validate = subparsers.add_parser("validate", help="Validate an IR document")
    validate.add_argument("ir", help="IR document (path, or - for stdin)")

    subparsers.add_parser("version", help="Print the installed version")

    return parser.parse_args(list(argv))


def _read_document(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    path = Path(source)
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Cannot read {path}: {exc.strerror or exc}") from exc


def _inline_or_file(value: str | None) -> str | None:
    if value is None:
        return None
    if value.startswith("@"):
        return _read_document(value[1:])
    return value


async def _run(args: argparse.Namespace) -> str | None:
    match args.command:
        case "build-ir":
            return await app.build_ir(
                args.source_type, args.format, args.path, _inline_or_file(args.config)
            )
        case "compare":
            options = {
                "strategy": args.strategy,
                "threshold": args.threshold,
                "ignore_fields": args.ignore_fields,
            }
            return await app.compare(
                _read_document(args.ir_a),
                _read_document(args.ir_b),
                {key: value for key, value in options.items() if value is not None},
            )
        case "propose":
            options = {
                "strategy": args.strategy,
                "prefer_source": args.prefer_source,
                "auto_resolve_threshold": args.auto_resolve_threshold,
            }
            return await app.propose_resolution(
                _read_document(args.comparison),
                {key: value for key, value in options.items() if value is not None},
            )
        case "apply":
            config = {
                "stop_on_failure": args.stop_on_failure,
                "timeout_seconds": args.timeout,
                "store_uri": args.store_uri,
            }
            return await app.apply_resolution(
                _read_document(args.plan),
                {
                    "dry_run": args.dry_run,
                    "backup": not args.no_backup,
                    "config": {key: value for key, value in config.items() if value is not None},
                },
            )
        case "rollback":
            await app.restore_backup(args.backup_ref, store_uri=args.store_uri)
            log.info("Restored backup %s", args.backup_ref)
            return None
        case "validate":
            return await app.validate_ir(_read_document(args.ir))
        case "version":
            return app.version()
        case _:
            raise ValueError(f"Unsupported command: {args.command}")


def _emit(document: str, output: Path | None) -> None:
    if output is None:
        sys.stdout.write(document + "\n")
        return
    output.write_text(document + "\n", encoding="utf-8")
    log.info("Wrote %s", output)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        level = parse_log_level(parsed_args.log_level) if parsed_args.log_level else None
        configure_logging(level=level)
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        document = asyncio.run(_run(parsed_args))
    except SchemaReconError as exc:
        sys.stderr.write(json.dumps(exc.to_document(), indent=2) + "\n")
        sys.exit(1)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)

    if document is not None:
        _emit(document, parsed_args.output)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def entrypoint() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    entrypoint()
