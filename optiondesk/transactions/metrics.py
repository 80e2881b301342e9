"""
Derived metric gateway: breakeven and risk rate from the external engine
"""

from typing import Any, Dict

from sqlalchemy.engine import Connection

from ..backends.base import BREAKEVEN, RISK_RATE, StoreBackend
from ..errors import EngineError, describe_driver_error
from ..records import DerivedMetrics, StrategyType


class MetricGateway:
    """
    指标计算网关

    参数原样传给引擎（引擎负责校验策略类型和数值范围），
    引擎侧的任何错误都转换为 EngineError。
    """

    def __init__(self, backend: StoreBackend):
        self.backend = backend

    def compute_breakeven(
        self,
        conn: Connection,
        strategy_type: Any,
        current_price: Any,
        strike_price: Any,
        premium: Any,
    ) -> float:
        """计算盈亏平衡点"""
        return self._call(conn, BREAKEVEN, strategy_type, current_price, strike_price, premium)

    def compute_risk_rate(
        self,
        conn: Connection,
        strategy_type: Any,
        current_price: Any,
        strike_price: Any,
        premium: Any,
    ) -> float:
        """计算风险率"""
        return self._call(conn, RISK_RATE, strategy_type, current_price, strike_price, premium)

    def compute_metrics(
        self,
        conn: Connection,
        strategy_type: Any,
        current_price: Any,
        strike_price: Any,
        premium: Any,
    ) -> DerivedMetrics:
        """
        依次计算两个指标

        两次调用互不依赖，但同一个连接不能并发使用，所以顺序执行。
        """
        return DerivedMetrics(
            breakeven=self.compute_breakeven(conn, strategy_type, current_price, strike_price, premium),
            risk_rate=self.compute_risk_rate(conn, strategy_type, current_price, strike_price, premium),
        )

    def _call(
        self,
        conn: Connection,
        function: str,
        strategy_type: Any,
        current_price: Any,
        strike_price: Any,
        premium: Any,
    ) -> float:
        if isinstance(strategy_type, StrategyType):
            strategy_type = strategy_type.value

        params: Dict[str, Any] = {
            'strategy_type': strategy_type,
            'current_price': current_price,
            'strike_price': strike_price,
            'premium': premium,
        }

        try:
            value = self.backend.call_metric(conn, function, params)
        except self.backend.driver_errors as e:
            raise EngineError(function, describe_driver_error(e)) from e

        if value is None:
            raise EngineError(function, "engine returned no value")

        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise EngineError(function, f"engine returned a non-numeric value: {value!r}") from e
