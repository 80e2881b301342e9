"""
Pydantic models for API requests and responses
"""

from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..records import (
    AuditLogEntry,
    CalculationParams,
    DerivedMetrics,
    TransactionRecord,
)

T = TypeVar('T')


class CamelModel(BaseModel):
    """前端使用 camelCase 字段名"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Request Models
# ============================================================================

class CalculateRequest(CamelModel):
    """计算并保存交易请求（字段缺失由服务层按固定顺序报告）"""
    user_id: Optional[int] = Field(None, description="用户ID", examples=[1])
    stock_id: Optional[int] = Field(None, description="股票ID", examples=[2])
    strategy_type: Optional[str] = Field(None, description="策略类型", examples=["Protective Put"])
    strike_price: Optional[float] = Field(None, description="行权价", examples=[50.0])
    premium: Optional[float] = Field(None, description="权利金", examples=[3.0])
    maturity_time: Optional[int] = Field(None, description="到期时间", examples=[30])
    stock_quantity: Optional[int] = Field(None, description="股票数量", examples=[100])
    current_price: Optional[float] = Field(None, description="当前价格（不入库）", examples=[48.0])

    def to_params(self) -> CalculationParams:
        return CalculationParams(**self.model_dump())


class PreviewRequest(CamelModel):
    """试算请求"""
    strategy_type: Optional[str] = Field(None, examples=["Covered Call"])
    current_price: Optional[float] = Field(None, examples=[100.0])
    strike_price: Optional[float] = Field(None, examples=[105.0])
    premium: Optional[float] = Field(None, examples=[2.0])


# ============================================================================
# Response Models
# ============================================================================

class TransactionOut(CamelModel):
    """交易记录"""
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
    def from_record(cls, record: TransactionRecord) -> "TransactionOut":
        return cls(**asdict(record))


class AuditLogOut(CamelModel):
    """审计日志"""
    id: int
    action: str
    table_name: str = Field(alias="table")
    timestamp: Optional[datetime] = None
    user_id: Optional[int] = None

    @classmethod
    def from_entry(cls, entry: AuditLogEntry) -> "AuditLogOut":
        return cls(**asdict(entry))


class MetricsOut(CamelModel):
    """指标"""
    breakeven: float
    risk_rate: float

    @classmethod
    def from_metrics(cls, metrics: DerivedMetrics) -> "MetricsOut":
        return cls(breakeven=metrics.breakeven, risk_rate=metrics.risk_rate)


class CalculationOut(CamelModel):
    """
    计算并保存的结果

    complete=False 表示交易已写入但历史记录没能读回，此时 user_transactions 为 None
    """
    breakeven: float
    risk_rate: float
    transaction_id: int
    user_transactions: Optional[List[TransactionOut]]
    complete: bool = True


class ApiResponse(BaseModel, Generic[T]):
    """统一响应格式"""
    success: bool
    message: Optional[str] = None
    data: Optional[T] = None
    error: Optional[str] = None


# ============================================================================
# System Models
# ============================================================================

class HealthResponse(BaseModel):
    """健康检查响应"""
    status: str
    version: str
    pool: Dict[str, Any]
    timestamp: datetime
