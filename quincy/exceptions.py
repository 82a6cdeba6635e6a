"""
Exceptions for Quincy.

All errors carry a structured code for programmatic handling.
"""

from decimal import Decimal
from typing import Any


class QuincyError(Exception):
    """
    Structured base exception.

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, **data: Any):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(f"[{code}] {self.message}")

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.message,
            'data': {
                k: str(v) if isinstance(v, Decimal) else v
                for k, v in self.data.items()
            }
        }


class EngineError(QuincyError):
    """
    Raised by the stock engine façade and policy construction.

    The pure calculations never raise on bad rows; they drop them.
    This is for misconfiguration and for failures at the fetch boundary.

    Usage:
        try:
            engine.analyze()
        except EngineError as e:
            if e.code == 'FETCH_ERROR':
                notify_user(e.message)
    """

    _default_messages = {
        'INVALID_POLICY': 'Invalid engine policy configuration',
        'INVALID_TIMEFRAME': 'Invalid timeframe',
        'EQUIPMENT_NOT_FOUND': 'Equipment not found',
        'FETCH_ERROR': 'Could not load equipment or booking data',
    }

    @property
    def equipment_id(self) -> str | None:
        """Shortcut for data['equipment_id']."""
        return self.data.get('equipment_id')
