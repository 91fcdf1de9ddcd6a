"""Startup health checks.

Two checks run side by side: the loaded configuration is internally
consistent, and the document store answers a ping within a deadline. The
resulting ``HealthReport`` can be written to a JSON file for an external
probe.
"""

from __future__ import annotations

import asyncio
import json
import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from campus_market.utils.async_helpers import MarketError, with_timeout
from campus_market.utils.logging import LogEventNames

if TYPE_CHECKING:
    from collections.abc import Sequence

    from campus_market.config.schema import MarketConfig
    from campus_market.interfaces.store import DocumentStore

log = structlog.get_logger()

DEFAULT_PING_TIMEOUT = 5.0


class HealthStatus(StrEnum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


@dataclass
class CheckResult:
    """Outcome of one named check."""

    name: str
    status: HealthStatus
    message: str
    latency_ms: float | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "message": self.message,
            "latency_ms": self.latency_ms,
            "details": self.details,
        }


@dataclass
class HealthReport:
    """All check results plus the rolled-up status."""

    healthy: bool
    status: HealthStatus
    timestamp: datetime
    checks: list[CheckResult]
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_checks(cls, checks: Sequence[CheckResult], timestamp: datetime) -> HealthReport:
        status = _overall(checks)
        counts = Counter(c.status for c in checks)
        return cls(
            healthy=status is not HealthStatus.UNHEALTHY,
            status=status,
            timestamp=timestamp,
            checks=list(checks),
            details={
                "total_checks": len(checks),
                "healthy_checks": counts[HealthStatus.HEALTHY],
                "unhealthy_checks": counts[HealthStatus.UNHEALTHY],
            },
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "healthy": self.healthy,
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "checks": [c.to_dict() for c in self.checks],
            "details": self.details,
        }


def _overall(checks: Sequence[CheckResult]) -> HealthStatus:
    """Any unhealthy check wins; otherwise anything short of healthy degrades."""
    statuses = {c.status for c in checks}
    if HealthStatus.UNHEALTHY in statuses:
        return HealthStatus.UNHEALTHY
    if statuses <= {HealthStatus.HEALTHY}:
        return HealthStatus.HEALTHY
    return HealthStatus.DEGRADED


def _elapsed_ms(start: float) -> float:
    return (time.monotonic() - start) * 1000


class HealthChecker:
    """Checks configuration and store reachability.

    Example:
        report = await HealthChecker(config, store).run_all_checks()
        if not report.healthy:
            sys.exit(1)
    """

    def __init__(
        self,
        config: MarketConfig,
        store: DocumentStore,
        ping_timeout: float = DEFAULT_PING_TIMEOUT,
    ) -> None:
        self._config = config
        self._store = store
        self._ping_timeout = ping_timeout

    async def run_all_checks(self) -> HealthReport:
        """Run every check concurrently.

        A check that raises instead of returning a result is reported as an
        unhealthy check named ``unknown``.
        """
        log.info(LogEventNames.HEALTH_CHECK_START)
        started = datetime.now(UTC)

        outcomes = await asyncio.gather(
            self._check_config(),
            self._check_store(),
            return_exceptions=True,
        )
        checks = [
            outcome
            if isinstance(outcome, CheckResult)
            else CheckResult(
                name="unknown",
                status=HealthStatus.UNHEALTHY,
                message=f"Check failed with exception: {outcome}",
            )
            for outcome in outcomes
        ]

        report = HealthReport.from_checks(checks, started)
        log.info(
            LogEventNames.HEALTH_CHECK_COMPLETE,
            healthy=report.healthy,
            status=report.status.value,
            checks_run=len(checks),
        )
        return report

    async def _check_config(self) -> CheckResult:
        store = self._config.store
        domain = self._config.auth.allowed_email_domain

        if store.provider == "firestore" and store.firestore is None:
            return CheckResult(
                name="config",
                status=HealthStatus.UNHEALTHY,
                message="Firestore provider selected but not configured",
            )

        details = {"store_provider": store.provider, "allowed_email_domain": domain}
        if domain is None:
            return CheckResult(
                name="config",
                status=HealthStatus.DEGRADED,
                message="Sign-in is not restricted to a university domain",
                details=details,
            )
        return CheckResult(
            name="config",
            status=HealthStatus.HEALTHY,
            message="Configuration valid",
            details=details,
        )

    async def _check_store(self) -> CheckResult:
        start = time.monotonic()
        try:
            await with_timeout(self._store.ping(), self._ping_timeout, "Store ping timed out")
        except MarketError as e:
            return CheckResult(
                name="store",
                status=HealthStatus.UNHEALTHY,
                message=f"Store unreachable: {e}",
                latency_ms=_elapsed_ms(start),
            )
        return CheckResult(
            name="store",
            status=HealthStatus.HEALTHY,
            message="Store reachable",
            latency_ms=_elapsed_ms(start),
            details={"provider": self._config.store.provider},
        )


async def write_health_file(report: HealthReport, path: Path) -> None:
    """Dump ``report`` as JSON to ``path``; a write failure is logged, not raised."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(report.to_dict(), indent=2))
    except OSError as e:
        log.error("health_file_write_error", path=str(path), error=str(e))
        return
    log.debug("health_file_written", path=str(path))
