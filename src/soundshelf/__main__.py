"""soundshelf entry point.

Commands:
  serve    Run the HTTP server (default).
  migrate  Copy every object from the configured object store to local storage.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from soundshelf.config import Settings
from soundshelf.errors import ConfigurationError, StorageError
from soundshelf.logging_setup import setup_logging

logger = logging.getLogger(__name__)

FAILED_LIST_NAME = "failed_migration.json"


def _apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    updates = {
        name: value
        for name in ("host", "port", "backend", "storage_path", "log_level")
        if (value := getattr(args, name, None)) is not None
    }
    if not updates:
        return settings
    return settings.model_copy(update=updates)


def run_server(settings: Settings) -> int:
    import uvicorn

    from soundshelf.app import create_app

    try:
        app = create_app(settings)
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return 1

    logger.info("Server running at http://%s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
    return 0


async def _migrate(settings: Settings, prefix: str) -> int:
    from soundshelf.migration import MigrationRunner
    from soundshelf.storage.factory import build_object_store_backend

    try:
        source = build_object_store_backend(settings)
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return 1

    runner = MigrationRunner(source, settings.storage_path)
    try:
        report = await runner.run(prefix)
    except StorageError as exc:
        logger.error("Listing failed, nothing migrated: %s", exc.message)
        return 1
    finally:
        await source.aclose()

    if report.failures:
        failed_path = Path.cwd() / FAILED_LIST_NAME
        report.write_failures(failed_path)
        logger.warning("Failed keys written to %s", failed_path)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="soundshelf",
        description="Browse local or object storage and stream audio through a same-origin proxy.",
    )
    parser.add_argument("--log-level", dest="log_level", default=None, help="Logging level")
    parser.add_argument("--storage-path", dest="storage_path", type=Path, default=None)
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the HTTP server (default)")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.add_argument("--backend", choices=["local", "object_store"], default=None)

    migrate = sub.add_parser("migrate", help="Copy the object store into local storage")
    migrate.add_argument("--prefix", default="", help="Only migrate keys under this prefix")

    args = parser.parse_args(argv)
    settings = _apply_overrides(Settings.load(), args)
    setup_logging(level=settings.log_level)

    if args.command == "migrate":
        return asyncio.run(_migrate(settings, args.prefix))
    return run_server(settings)


if __name__ == "__main__":
    sys.exit(main())
