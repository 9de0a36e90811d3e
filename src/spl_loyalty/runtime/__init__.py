"""Runtime helpers for the SPL loyalty token service"""

from .errors import ServiceError, LedgerError, ValidationError
from .amounts import to_base_units, from_base_units

__all__ = [
    "ServiceError",
    "LedgerError",
    "ValidationError",
    "to_base_units",
    "from_base_units",
]
