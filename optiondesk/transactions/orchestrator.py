"""
Transaction orchestrator: metrics -> insert -> read back, in one connection scope
"""

from enum import Enum
from typing import Any, List

from ..backends.base import StoreBackend
from ..database.connection import DatabaseManager
from ..errors import OptionDeskError, OrchestrationError, ValidationError
from ..utils.logger import get_logger
from ..records import (
    CalculationParams,
    CalculationResult,
    DerivedMetrics,
    TransactionRecord,
)
from .metrics import MetricGateway
from .reader import TransactionReader
from .writer import TransactionWriter, validate_transaction_request

logger = get_logger(__name__)


class Step(str, Enum):
    """编排步骤（失败时写入 OrchestrationError.step）"""
    BREAKEVEN = "compute_breakeven"
    RISK_RATE = "compute_risk_rate"
    INSERT = "insert_transaction"
    READ_BACK = "read_user_transactions"


class TransactionOrchestrator:
    """
    交易编排器

    失败语义：
    - 第1/2步失败：没有任何持久化状态，可以直接重试
    - 第3步失败：指标已算出但没有写入
    - 第4步失败：写入已提交，OrchestrationError 携带 transaction_id（部分成功）

    编排器不做重试：写入没有幂等保证，重试可能重复插入。
    """

    def __init__(self, db_manager: DatabaseManager, backend: StoreBackend):
        self.db_manager = db_manager
        self.metrics = MetricGateway(backend)
        self.writer = TransactionWriter(backend)
        self.reader = TransactionReader(backend)

    def calculate_and_store(self, params: CalculationParams) -> CalculationResult:
        """
        计算指标、写入交易并返回用户的全部交易

        Args:
            params: 交易请求 + 当前价格

        Returns:
            CalculationResult

        Raises:
            ValidationError: 必填字段缺失（在任何 I/O 之前）
            PoolError: 无法获得连接
            OrchestrationError: 某一步失败，step 标明是哪一步
        """
        request = params.to_request()
        validate_transaction_request(request)
        if params.current_price is None:
            raise ValidationError('current_price')

        engine_args = (params.strategy_type, params.current_price, params.strike_price, params.premium)

        with self.db_manager.connection_scope() as conn:
            try:
                breakeven = self.metrics.compute_breakeven(conn, *engine_args)
            except OptionDeskError as e:
                raise OrchestrationError(Step.BREAKEVEN.value, e) from e
            logger.debug("Breakeven point: %s", breakeven)

            try:
                risk_rate = self.metrics.compute_risk_rate(conn, *engine_args)
            except OptionDeskError as e:
                raise OrchestrationError(Step.RISK_RATE.value, e) from e
            logger.debug("Risk rate: %s", risk_rate)

            metrics = DerivedMetrics(breakeven=breakeven, risk_rate=risk_rate)

            try:
                transaction_id = self.writer.insert_transaction(conn, request)
            except OptionDeskError as e:
                raise OrchestrationError(Step.INSERT.value, e, metrics=metrics) from e

            try:
                user_transactions = self.reader.get_user_transactions(conn, request.user_id)
            except OptionDeskError as e:
                raise OrchestrationError(
                    Step.READ_BACK.value, e, metrics=metrics, transaction_id=transaction_id
                ) from e

        return CalculationResult(
            breakeven=breakeven,
            risk_rate=risk_rate,
            transaction_id=transaction_id,
            user_transactions=user_transactions,
        )

    def preview_metrics(
        self,
        strategy_type: Any,
        current_price: Any,
        strike_price: Any,
        premium: Any,
    ) -> DerivedMetrics:
        """
        只计算指标，不写入也不查询（试算）

        Raises:
            ValidationError: 参数缺失
            PoolError: 无法获得连接
            OrchestrationError: 指标计算失败
        """
        for field, value in (
            ('strategy_type', strategy_type),
            ('current_price', current_price),
            ('strike_price', strike_price),
            ('premium', premium),
        ):
            if value is None:
                raise ValidationError(field)

        with self.db_manager.connection_scope() as conn:
            try:
                breakeven = self.metrics.compute_breakeven(
                    conn, strategy_type, current_price, strike_price, premium
                )
            except OptionDeskError as e:
                raise OrchestrationError(Step.BREAKEVEN.value, e) from e

            try:
                risk_rate = self.metrics.compute_risk_rate(
                    conn, strategy_type, current_price, strike_price, premium
                )
            except OptionDeskError as e:
                raise OrchestrationError(Step.RISK_RATE.value, e) from e

        return DerivedMetrics(breakeven=breakeven, risk_rate=risk_rate)

    def list_user_transactions(self, user_id: int) -> List[TransactionRecord]:
        """在独立的连接范围内查询用户交易"""
        with self.db_manager.connection_scope() as conn:
            return self.reader.get_user_transactions(conn, user_id)
