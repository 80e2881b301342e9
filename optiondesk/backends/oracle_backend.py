"""
Oracle backend: engine calls go to the PL/SQL package ``transaction_pkg``

Audit visibility is enforced inside the package from the role set with
``set_user_role``; ``clear_user_role`` runs on every pool checkout.
"""

from typing import Any, Iterator, List, Mapping

import oracledb
from sqlalchemy import Float, Integer, outparam, text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from ..database.connection import SESSION_CONTEXT_KEY
from ..records import RoleContext
from .base import METRIC_FUNCTIONS, StoreBackend

PACKAGE = "transaction_pkg"


class OracleBackend(StoreBackend):
    """调用 transaction_pkg 存储过程"""

    name = "oracle"
    driver_errors = (SQLAlchemyError, oracledb.Error)

    def call_metric(self, conn: Connection, function: str, params: Mapping[str, Any]) -> Any:
        if function not in METRIC_FUNCTIONS:
            raise ValueError(f"Unknown engine function: {function}")

        statement = text(
            f"BEGIN :result := {PACKAGE}.{function}"
            f"(:strategy_type, :current_price, :strike_price, :premium); END;"
        ).bindparams(outparam("result", Float))
        result = conn.execute(statement, dict(params))
        return result.out_parameters["result"]

    def insert_transaction(self, conn: Connection, values: Mapping[str, Any]) -> Any:
        statement = text(
            f"BEGIN {PACKAGE}.insert_transaction("
            ":user_id, :stock_id, :strategy_type, :strike_price, "
            ":premium, :maturity_time, :stock_quantity, :transaction_id); END;"
        ).bindparams(outparam("transaction_id", Integer))
        result = conn.execute(statement, dict(values))
        return result.out_parameters["transaction_id"]

    def iter_user_transactions(self, conn: Connection, user_id: int) -> Iterator[Mapping[str, Any]]:
        return self._iter_ref_cursor(conn, "get_user_transactions", [user_id])

    def set_session_role(self, conn: Connection, context: RoleContext) -> None:
        conn.execute(
            text(f"BEGIN {PACKAGE}.set_user_role(:user_id, :role); END;"),
            {"user_id": context.user_id, "role": context.role},
        )
        conn.info[SESSION_CONTEXT_KEY] = context

    def iter_audit_logs(self, conn: Connection) -> Iterator[Mapping[str, Any]]:
        return self._iter_ref_cursor(conn, "get_audit_logs", [])

    def reset_session(self, dbapi_connection: Any) -> None:
        cursor = dbapi_connection.cursor()
        try:
            cursor.callproc(f"{PACKAGE}.clear_user_role")
        finally:
            cursor.close()

    def _iter_ref_cursor(self, conn: Connection, procedure: str, args: List[Any]) -> Iterator[Mapping[str, Any]]:
        """调用最后一个参数为 OUT SYS_REFCURSOR 的存储过程，逐行产出字典"""
        cursor = conn.connection.cursor()
        try:
            ref_cursor = cursor.var(oracledb.DB_TYPE_CURSOR)
            cursor.callproc(f"{PACKAGE}.{procedure}", [*args, ref_cursor])
            result_set = ref_cursor.getvalue()
            try:
                columns = [description[0].lower() for description in result_set.description]
                for row in result_set:
                    yield dict(zip(columns, row))
            finally:
                result_set.close()
        finally:
            cursor.close()
