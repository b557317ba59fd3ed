"""
Fail-fast checks of the scheduling configuration.

A bad timezone or a zero granularity would not crash the service; it would
silently publish wrong availability. These checks run once on API startup.

Critical checks raise StartupValidationError. Advisory checks only log a
warning (placeholder JWT secret, non-asyncpg database URL, zero lead time).
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from shared.config import Settings, get_settings

logger = logging.getLogger(__name__)

PLACEHOLDER_JWT_SECRET = "change-me-in-production"
MIN_JWT_SECRET_LENGTH = 24

# Settings that must be strictly positive
POSITIVE_SETTINGS = (
    "SLOT_GRANULARITY_MINUTES",
    "MAX_QUERY_RANGE_DAYS",
    "STORE_TIMEOUT_SECONDS",
    "PUBLIC_RATE_LIMIT_MAX_REQUESTS",
    "PUBLIC_RATE_LIMIT_WINDOW_SECONDS",
)


class StartupValidationError(Exception):
    """Raised when a critical configuration check fails."""


@dataclass(frozen=True)
class Check:
    name: str
    passed: bool
    message: str
    critical: bool


def _timezone_check(settings: Settings) -> Check:
    try:
        ZoneInfo(settings.DEFAULT_TIMEZONE)
        passed = True
    except (ZoneInfoNotFoundError, ValueError):
        passed = False
    return Check(
        "default_timezone",
        passed,
        f"DEFAULT_TIMEZONE is not a known IANA zone: {settings.DEFAULT_TIMEZONE}",
        critical=True,
    )


def _positive_checks(settings: Settings) -> list[Check]:
    checks = []
    for name in POSITIVE_SETTINGS:
        value = getattr(settings, name)
        checks.append(Check(name.lower(), value > 0, f"{name} must be positive (got {value})", True))
    return checks


def _lead_time_check(settings: Settings) -> Check:
    value = settings.MIN_LEAD_TIME_MINUTES
    return Check(
        "min_lead_time_minutes", value >= 0, f"MIN_LEAD_TIME_MINUTES must not be negative (got {value})", True
    )


def _advisory_checks(settings: Settings) -> list[Check]:
    secret = settings.JWT_SECRET
    return [
        Check(
            "jwt_secret",
            secret != PLACEHOLDER_JWT_SECRET and len(secret) >= MIN_JWT_SECRET_LENGTH,
            f"JWT_SECRET is a placeholder or shorter than {MIN_JWT_SECRET_LENGTH} characters",
            critical=False,
        ),
        Check(
            "database_url_format",
            settings.DATABASE_URL.startswith("postgresql+asyncpg://"),
            "DATABASE_URL should use the asyncpg driver: postgresql+asyncpg://...",
            critical=False,
        ),
        Check(
            "lead_time_buffer",
            settings.MIN_LEAD_TIME_MINUTES != 0,
            "MIN_LEAD_TIME_MINUTES is 0, slots starting right now are bookable",
            critical=False,
        ),
    ]


CHECKS: tuple[Callable[[Settings], Check | list[Check]], ...] = (
    _timezone_check,
    _positive_checks,
    _lead_time_check,
    _advisory_checks,
)


def validate_startup_config(settings: Settings | None = None) -> dict[str, bool]:
    """
    Run every configuration check.

    Returns:
        {check_name: passed}

    Raises:
        StartupValidationError: one or more critical checks failed
    """
    settings = settings or get_settings()

    checks: list[Check] = []
    for run in CHECKS:
        outcome = run(settings)
        checks.extend(outcome if isinstance(outcome, list) else [outcome])

    for check in checks:
        if not check.passed and not check.critical:
            logger.warning(check.message)

    failures = [check.message for check in checks if check.critical and not check.passed]
    logger.info(f"Startup validation: {sum(c.passed for c in checks)}/{len(checks)} checks passed")

    if failures:
        for failure in failures:
            logger.critical(f"Configuration error: {failure}")
        raise StartupValidationError(
            f"Critical startup validation failed ({len(failures)} errors): {'; '.join(failures)}"
        )

    return {check.name: check.passed for check in checks}
