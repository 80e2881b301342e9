"""
Typed records exchanged between the transaction layer and its callers
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union


class StrategyType(str, Enum):
    """已知的策略类型（引擎是最终裁决者，这里不做校验）"""
    PROTECTIVE_PUT = "Protective Put"
    COVERED_CALL = "Covered Call"
    CASH_SECURED_PUT = "Cash Secured Put"


# 必填字段，按固定顺序检查
REQUIRED_FIELDS = (
    'user_id',
    'stock_id',
    'strategy_type',
    'strike_price',
    'premium',
    'maturity_time',
    'stock_quantity',
)


@dataclass
class TransactionRequest:
    """待写入的交易请求；字段允许为 None，由 writer 统一校验"""
    user_id: Optional[int]
    stock_id: Optional[int]
    strategy_type: Optional[Union[str, StrategyType]]
    strike_price: Optional[float]
    premium: Optional[float]
    maturity_time: Optional[int]
    stock_quantity: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if isinstance(self.strategy_type, StrategyType):
            data['strategy_type'] = self.strategy_type.value
        return data


@dataclass
class CalculationParams(TransactionRequest):
    """编排器的输入：交易请求 + 调用方提供的当前价格（不入库）"""
    current_price: Optional[float] = None

    def to_request(self) -> TransactionRequest:
        """取出写入所需的子集"""
        return TransactionRequest(
            user_id=self.user_id,
            stock_id=self.stock_id,
            strategy_type=self.strategy_type,
            strike_price=self.strike_price,
            premium=self.premium,
            maturity_time=self.maturity_time,
            stock_quantity=self.stock_quantity,
        )


@dataclass(frozen=True)
class DerivedMetrics:
    breakeven: float
    risk_rate: float


@dataclass(frozen=True)
class RoleContext:
    """传播到连接会话上下文中的角色"""
    user_id: int
    role: str


def _lower_keys(row: Mapping[str, Any]) -> Dict[str, Any]:
    # Oracle 游标返回大写列名
    return {str(key).lower(): value for key, value in row.items()}


@dataclass(frozen=True)
class TransactionRecord:
    transaction_id: int
    user_id: int
    stock_id: int
    strategy_type: str
    strike_price: float
    premium: float
    maturity_time: int
    stock_quantity: int
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "TransactionRecord":
        data = _lower_keys(row)
        return cls(
            transaction_id=int(data['transaction_id']),
            user_id=int(data['user_id']),
            stock_id=int(data['stock_id']),
            strategy_type=str(data['strategy_type']),
            strike_price=float(data['strike_price']),
            premium=float(data['premium']),
            maturity_time=int(data['maturity_time']),
            stock_quantity=int(data['stock_quantity']),
            created_at=data.get('created_at'),
        )


@dataclass(frozen=True)
class AuditLogEntry:
    id: int
    action: str
    table_name: str
    timestamp: Optional[datetime]
    user_id: Optional[int]

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "AuditLogEntry":
        data = _lower_keys(row)
        user_id = data.get('user_id')
        return cls(
            id=int(data['id']),
            action=str(data['action']),
            # Oracle 包里这一列叫 "table"
            table_name=str(data.get('table_name', data.get('table'))),
            timestamp=data.get('timestamp'),
            user_id=int(user_id) if user_id is not None else None,
        )


@dataclass(frozen=True)
class CalculationResult:
    """完整编排成功的结果"""
    breakeven: float
    risk_rate: float
    transaction_id: int
    user_transactions: List[TransactionRecord]
