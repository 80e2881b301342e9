"""
Call contract between the transaction layer and the backing store's engine
"""

from abc import ABC, abstractmethod
from typing import Any, Iterator, Mapping, Optional, Tuple, Type

from sqlalchemy import select
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from ..database.models import User
from ..records import RoleContext

# 引擎提供的两个指标函数
BREAKEVEN = "calculate_breakeven"
RISK_RATE = "calculate_risk_rate"
METRIC_FUNCTIONS = (BREAKEVEN, RISK_RATE)


class StoreBackend(ABC):
    """
    存储后端基类

    每个方法只发出对应的一次引擎/存储调用，不做业务校验，也不翻译异常；
    驱动异常（driver_errors）由上层网关统一转换为类型化错误。
    """

    name = "base"
    driver_errors: Tuple[Type[BaseException], ...] = (SQLAlchemyError,)

    @abstractmethod
    def call_metric(self, conn: Connection, function: str, params: Mapping[str, Any]) -> Any:
        """
        调用引擎的指标函数

        Args:
            conn: 当前连接
            function: BREAKEVEN 或 RISK_RATE
            params: strategy_type, current_price, strike_price, premium

        Returns:
            引擎返回的标量
        """

    @abstractmethod
    def insert_transaction(self, conn: Connection, values: Mapping[str, Any]) -> Any:
        """写入一条交易，返回存储生成的 transaction_id（不提交）"""

    @abstractmethod
    def iter_user_transactions(self, conn: Connection, user_id: int) -> Iterator[Mapping[str, Any]]:
        """按存储顺序逐行返回用户的交易（一次性迭代器）"""

    def resolve_role(self, conn: Connection, user_id: int) -> Optional[str]:
        """查询用户角色，用户不存在时返回 None"""
        row = conn.execute(
            select(User.role).where(User.user_id == user_id)
        ).first()
        return row[0] if row is not None else None

    @abstractmethod
    def set_session_role(self, conn: Connection, context: RoleContext) -> None:
        """把角色写入该连接的会话上下文"""

    @abstractmethod
    def iter_audit_logs(self, conn: Connection) -> Iterator[Mapping[str, Any]]:
        """返回当前会话角色可见的全部审计日志"""

    def reset_session(self, dbapi_connection: Any) -> None:
        """连接从池中借出时清理数据库侧的会话状态，默认无需处理"""
