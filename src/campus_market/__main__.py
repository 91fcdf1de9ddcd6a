"""The ``campus-market`` command.

Loads a configuration file, sets up logging, connects to the configured
document store and runs the health checks. The exit status is 0 when the
service could start against that configuration and 1 otherwise. With
``--dry-run`` only the configuration is validated.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

import structlog

from campus_market._version import __version__
from campus_market.config.loader import load_config
from campus_market.config.schema import MarketConfig
from campus_market.utils.logging import LogFormat, LogLevel, configure_logging
from campus_market.utils.security import mask_config_value

log = structlog.get_logger()

DEFAULT_CONFIG_PATH = Path("config/config.yaml")


def setup_logging(
    debug: bool = False,
    log_format: str = "console",
    file_path: Path | None = None,
    file_enabled: bool = False,
) -> None:
    """Bootstrap logging from command line flags, before any config is read."""
    configure_logging(
        level=LogLevel.DEBUG if debug else LogLevel.INFO,
        log_format=LogFormat(log_format.lower()),
        file_path=file_path,
        file_enabled=file_enabled,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="campus-market",
        description="campus-market - university marketplace chat service",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to configuration file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate the configuration without contacting the store",
    )
    parser.add_argument(
        "--format",
        choices=[f.value for f in LogFormat],
        default=LogFormat.CONSOLE.value,
        help="Log output format (default: console)",
    )
    parser.add_argument(
        "--health-file",
        type=Path,
        default=None,
        help="Also write the health report as JSON to this path",
    )
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def _describe(config: MarketConfig) -> dict[str, Any]:
    """Loggable summary of the store settings with credentials masked."""
    firestore = config.store.firestore
    summary: dict[str, Any] = {"store_provider": config.store.provider}
    if firestore is not None:
        summary["project_id"] = firestore.project_id
        summary["database"] = firestore.database
        if firestore.credentials_path is not None:
            summary["credentials_path"] = mask_config_value(
                "credentials_path", str(firestore.credentials_path)
            )
    return summary


def _apply_logging_config(config: MarketConfig) -> None:
    file_config = config.logging.file
    configure_logging(
        level=config.logging.level,
        log_format=config.logging.format,
        file_path=file_config.path if file_config.enabled else None,
        file_enabled=file_config.enabled,
    )


async def _check_store(config: MarketConfig, health_file: Path | None) -> bool:
    # Imported here so --dry-run never loads the Firestore client
    from campus_market.core.service import create_service
    from campus_market.utils.health import HealthChecker, write_health_file

    service = await create_service(config)
    report = await HealthChecker(config, service.store).run_all_checks()
    if health_file is not None:
        await write_health_file(report, health_file)

    if report.healthy:
        log.info("health_check_passed", status=report.status.value, details=report.details)
    else:
        log.error("health_check_failed", status=report.status.value, details=report.details)
    return report.healthy


async def run(
    config_path: Path,
    dry_run: bool = False,
    health_file: Path | None = None,
) -> int:
    """Validate ``config_path`` and, unless ``dry_run``, health-check its store.

    Returns:
        Process exit code
    """
    log.info("starting_campus_market", version=__version__, config_path=str(config_path))

    try:
        config = load_config(config_path)
        log.info("configuration_loaded", **_describe(config))
        _apply_logging_config(config)

        if dry_run:
            log.info("dry_run_mode_config_valid")
            return 0

        return 0 if await _check_store(config, health_file) else 1

    except FileNotFoundError as e:
        log.error("configuration_file_not_found", path=str(config_path), error=str(e))
    except ValueError as e:
        # pydantic.ValidationError is a ValueError
        log.error("configuration_invalid", error=str(e))
    except Exception as e:
        log.exception("fatal_error", error=str(e))
    return 1


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(debug=args.debug, log_format=args.format)

    try:
        return asyncio.run(run(args.config, args.dry_run, args.health_file))
    except KeyboardInterrupt:
        log.info("shutting_down_gracefully")
        return 0


if __name__ == "__main__":
    sys.exit(main())
