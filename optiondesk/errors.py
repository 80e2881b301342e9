"""
Error taxonomy for the transaction layer
"""

from typing import Any, Optional


class OptionDeskError(Exception):
    """所有业务错误的基类"""

    # 是否可以把错误信息直接返回给调用方
    public = False

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(OptionDeskError):
    """请求字段缺失或格式错误（调用方的问题）"""

    public = True

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"Missing or null value for required field: {field}")


class NotFoundError(OptionDeskError):
    """引用的实体不存在"""

    public = True

    def __init__(self, entity: str, key: Any):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} {key} not found")


class EngineError(OptionDeskError):
    """外部计算引擎调用失败，message 为引擎返回的原始信息"""

    def __init__(self, function: str, message: str):
        self.function = function
        super().__init__(f"{function} failed: {message}")
        self.engine_message = message


class StoreError(OptionDeskError):
    """存储读写失败（基础设施问题）"""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"{operation} failed: {message}")


class PoolError(OptionDeskError):
    """连接池耗尽或数据库不可达"""


class OrchestrationError(OptionDeskError):
    """
    多步骤编排中某一步失败

    Attributes:
        step: 失败的步骤名（见 orchestrator.Step）
        cause: 原始的类型化错误
        metrics: 失败前已经计算出的指标（如果有）
        transaction_id: 失败前已经提交的交易ID（如果有）
    """

    def __init__(
        self,
        step: str,
        cause: OptionDeskError,
        metrics: Optional[Any] = None,
        transaction_id: Optional[int] = None,
    ):
        self.step = step
        self.cause = cause
        self.metrics = metrics
        self.transaction_id = transaction_id
        super().__init__(f"Step '{step}' failed: {cause.message}")

    @property
    def is_partial_success(self) -> bool:
        """写入已提交，只是后续步骤失败"""
        return self.transaction_id is not None


def describe_driver_error(exc: BaseException) -> str:
    """取出驱动异常里数据库/引擎返回的原始信息"""
    original = getattr(exc, 'orig', None)
    return str(original if original is not None else exc).strip()
