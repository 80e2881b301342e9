"""
Database persistence layer
"""

from .models import (
    Base,
    User,
    Stock,
    Transaction,
    AuditLog,
)
from .connection import DatabaseManager, SESSION_CONTEXT_KEY

__all__ = [
    'Base',
    'User',
    'Stock',
    'Transaction',
    'AuditLog',
    'DatabaseManager',
    'SESSION_CONTEXT_KEY',
]
