"""Logging filters and utilities."""

import logging
import re
import uuid
from collections.abc import Callable
from contextvars import ContextVar
from functools import wraps
from typing import Any
from typing import TypeVar


T = TypeVar('T')

# Context variable for correlation ID
correlation_id: ContextVar[str] = ContextVar('correlation_id', default='')

class SensitiveDataFilter(logging.Filter):
    """Filter to mask sensitive data in logs."""

    def __init__(self, sensitive_fields: set[str] | None = None, mask_pattern: str = '***MASKED***'):
        """Initialize filter.

        Args:
            sensitive_fields: Set of field names to mask
            mask_pattern: Replacement text for masked values
        """
        super().__init__()
        self.sensitive_fields = {f.lower() for f in (sensitive_fields or {
            'payment_id', 'payment_reference', 'token', 'secret'
        })}
        self.mask_pattern = mask_pattern
        # Context rendered by the logger mixins as "key=value" pairs
        self._inline = re.compile(
            r'\b(' + '|'.join(re.escape(f) for f in sorted(self.sensitive_fields)) + r')=[^\s|]+',
            re.IGNORECASE
        )

    def _mask_sensitive_data(self, obj: Any) -> Any:
        """Recursively mask sensitive data in object."""
        if isinstance(obj, dict):
            return {
                k: self.mask_pattern if str(k).lower() in self.sensitive_fields else self._mask_sensitive_data(v)
                for k, v in obj.items()
            }
        if isinstance(obj, list):
            return [self._mask_sensitive_data(item) for item in obj]
        return obj

    def filter(self, record: logging.LogRecord) -> bool:
        """Mask sensitive data in log record."""
        if hasattr(record, 'extra_fields'):
            record.extra_fields = self._mask_sensitive_data(record.extra_fields)
        message = record.getMessage()
        masked = self._inline.sub(lambda m: f"{m.group(1)}={self.mask_pattern}", message)
        if masked != message:
            record.msg, record.args = masked, None
        return True

class CorrelationFilter(logging.Filter):
    """Filter to add correlation ID to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add correlation ID to log record."""
        if not hasattr(record, 'extra_fields'):
            record.extra_fields = {}
        record.extra_fields['correlation_id'] = correlation_id.get()
        return True

def with_correlation_id(func: Callable[..., T]) -> Callable[..., T]:
    """Decorator to give every top-level call its own correlation ID."""
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        if correlation_id.get():
            return func(*args, **kwargs)
        token = correlation_id.set(str(uuid.uuid4()))
        try:
            return func(*args, **kwargs)
        finally:
            correlation_id.reset(token)
    return wrapper
