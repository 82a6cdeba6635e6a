"""
Quincy configuration.

Usage in settings.py:
    QUINCY = {
        "WARNING_DAYS": 30,
        "SUBRENTAL_PACK_SIZE": 4,
        "SUBRENTAL_MIN_SEVERITY": "medium",
        "CACHE_TIMEOUT": 120,
    }
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from django.conf import settings

from quincy.exceptions import EngineError
from quincy.types import ConflictSeverity, RentalPolicy, SeverityPolicy


@dataclass
class QuincySettings:
    """Quincy configuration settings."""

    # Warning timeframe: today .. today + WARNING_DAYS
    WARNING_DAYS: int = 30

    # Severity thresholds (shortfall/base and committed/base ratios)
    SEVERITY_CRITICAL_RATIO: float = 1.0
    SEVERITY_HIGH_RATIO: float = 0.5
    SEVERITY_MEDIUM_RATIO: float = 0.2
    SEVERITY_HIGH_USAGE: float = 2.0
    SEVERITY_MEDIUM_USAGE: float = 1.5

    # Subrental rounding: (shortfall + BUFFER) rounded up to PACK_SIZE
    SUBRENTAL_PACK_SIZE: int = 1
    SUBRENTAL_BUFFER: int = 0
    SUBRENTAL_MIN_SEVERITY: str = 'low'
    SUBRENTAL_DAILY_UNIT_COST: str = '150'

    # Engine result cache (0 = disabled)
    CACHE_ALIAS: str = 'default'
    CACHE_TIMEOUT: int = 120

    def severity_policy(self) -> SeverityPolicy:
        try:
            return SeverityPolicy(
                critical_ratio=float(self.SEVERITY_CRITICAL_RATIO),
                high_ratio=float(self.SEVERITY_HIGH_RATIO),
                medium_ratio=float(self.SEVERITY_MEDIUM_RATIO),
                high_usage=float(self.SEVERITY_HIGH_USAGE),
                medium_usage=float(self.SEVERITY_MEDIUM_USAGE),
            )
        except (TypeError, ValueError) as exc:
            raise EngineError('INVALID_POLICY', error=str(exc)) from exc

    def rental_policy(self) -> RentalPolicy:
        try:
            return RentalPolicy(
                pack_size=int(self.SUBRENTAL_PACK_SIZE),
                buffer=int(self.SUBRENTAL_BUFFER),
                min_severity=ConflictSeverity.parse(self.SUBRENTAL_MIN_SEVERITY),
                daily_unit_cost=Decimal(str(self.SUBRENTAL_DAILY_UNIT_COST)),
            )
        except (TypeError, ValueError, InvalidOperation) as exc:
            raise EngineError('INVALID_POLICY', error=str(exc)) from exc


def get_quincy_settings() -> QuincySettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "QUINCY", {})
    return QuincySettings(**{
        k: v for k, v in user_settings.items()
        if k in QuincySettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_quincy_settings(), name)


quincy_settings = _LazySettings()
