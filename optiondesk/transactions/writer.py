"""
Transaction writer
"""

from sqlalchemy.engine import Connection

from ..backends.base import StoreBackend
from ..errors import StoreError, ValidationError, describe_driver_error
from ..records import REQUIRED_FIELDS, TransactionRequest
from ..utils.logger import get_logger

logger = get_logger(__name__)


def validate_transaction_request(request: TransactionRequest) -> None:
    """
    检查必填字段

    按 REQUIRED_FIELDS 的固定顺序检查，遇到第一个缺失字段即失败。

    Raises:
        ValidationError: field 为第一个缺失的字段名
    """
    for field in REQUIRED_FIELDS:
        if getattr(request, field, None) is None:
            raise ValidationError(field)


class TransactionWriter:
    """交易写入层"""

    def __init__(self, backend: StoreBackend):
        self.backend = backend

    def insert_transaction(self, conn: Connection, request: TransactionRequest) -> int:
        """
        写入交易记录并立即提交

        没有外层事务：提交之后即使后续步骤失败，这条记录也已持久化。

        Args:
            conn: 当前连接
            request: 交易请求

        Returns:
            存储生成的 transaction_id

        Raises:
            ValidationError: 必填字段缺失（此时不会发出任何存储调用）
            StoreError: 写入失败
        """
        validate_transaction_request(request)

        try:
            transaction_id = self.backend.insert_transaction(conn, request.to_dict())
            conn.commit()
        except self.backend.driver_errors as e:
            raise StoreError("insert transaction", describe_driver_error(e)) from e

        if transaction_id is None:
            raise StoreError("insert transaction", "store did not return a transaction_id")

        logger.info("Transaction record inserted, transaction_id=%s", transaction_id)
        return int(transaction_id)
