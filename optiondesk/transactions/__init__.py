"""
Transaction orchestration layer
"""

from ..records import (
    StrategyType,
    REQUIRED_FIELDS,
    TransactionRequest,
    CalculationParams,
    DerivedMetrics,
    RoleContext,
    TransactionRecord,
    AuditLogEntry,
    CalculationResult,
)
from .metrics import MetricGateway
from .writer import TransactionWriter, validate_transaction_request
from .reader import TransactionReader
from .audit import AuditGateway
from .orchestrator import TransactionOrchestrator, Step

__all__ = [
    'StrategyType',
    'REQUIRED_FIELDS',
    'TransactionRequest',
    'CalculationParams',
    'DerivedMetrics',
    'RoleContext',
    'TransactionRecord',
    'AuditLogEntry',
    'CalculationResult',
    'MetricGateway',
    'TransactionWriter',
    'validate_transaction_request',
    'TransactionReader',
    'AuditGateway',
    'TransactionOrchestrator',
    'Step',
]
