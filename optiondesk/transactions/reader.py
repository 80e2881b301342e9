"""
Transaction reader
"""

from typing import List

from sqlalchemy.engine import Connection

from ..backends.base import StoreBackend
from ..errors import StoreError, describe_driver_error
from ..records import TransactionRecord


class TransactionReader:
    """交易查询层"""

    def __init__(self, backend: StoreBackend):
        self.backend = backend

    def get_user_transactions(self, conn: Connection, user_id: int) -> List[TransactionRecord]:
        """
        查询用户的全部交易，按存储顺序（transaction_id 升序）

        用户没有交易时返回空列表。

        Raises:
            StoreError: 查询失败或返回的行无法解析
        """
        try:
            return [
                TransactionRecord.from_row(row)
                for row in self.backend.iter_user_transactions(conn, user_id)
            ]
        except self.backend.driver_errors as e:
            raise StoreError("read user transactions", describe_driver_error(e)) from e
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError("read user transactions", f"malformed transaction row: {e}") from e
