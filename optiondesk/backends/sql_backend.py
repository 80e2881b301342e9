"""
Generic SQL backend (SQLite / PostgreSQL)

Engine functions are SQL scalar functions deployed with the database:
    calculate_breakeven(strategy_type, current_price, strike_price, premium)
    calculate_risk_rate(strategy_type, current_price, strike_price, premium)
"""

from typing import Any, Iterable, Iterator, Mapping

from sqlalchemy import insert, select, text
from sqlalchemy.engine import Connection

from ..database.connection import SESSION_CONTEXT_KEY
from ..database.models import AuditLog, Transaction
from ..errors import StoreError
from ..records import RoleContext
from .base import METRIC_FUNCTIONS, StoreBackend


class SqlBackend(StoreBackend):
    """通过 SQL 函数调用引擎；角色上下文保存在连接的 info 字典中"""

    name = "sql"

    def __init__(self, privileged_roles: Iterable[str] = ("admin", "auditor")):
        self.privileged_roles = frozenset(privileged_roles)

    def call_metric(self, conn: Connection, function: str, params: Mapping[str, Any]) -> Any:
        if function not in METRIC_FUNCTIONS:
            raise ValueError(f"Unknown engine function: {function}")

        statement = text(
            f"SELECT {function}(:strategy_type, :current_price, :strike_price, :premium)"
        )
        return conn.execute(statement, dict(params)).scalar_one()

    def insert_transaction(self, conn: Connection, values: Mapping[str, Any]) -> Any:
        result = conn.execute(insert(Transaction.__table__).values(**values))
        return result.inserted_primary_key[0]

    def iter_user_transactions(self, conn: Connection, user_id: int) -> Iterator[Mapping[str, Any]]:
        table = Transaction.__table__
        result = conn.execute(
            select(table)
            .where(table.c.user_id == user_id)
            .order_by(table.c.transaction_id)
        )
        for row in result.mappings():
            yield row

    def set_session_role(self, conn: Connection, context: RoleContext) -> None:
        conn.info[SESSION_CONTEXT_KEY] = context

    def iter_audit_logs(self, conn: Connection) -> Iterator[Mapping[str, Any]]:
        context = conn.info.get(SESSION_CONTEXT_KEY)
        if context is None:
            raise StoreError("read audit logs", "no role context set on this connection")

        table = AuditLog.__table__
        query = select(table).order_by(table.c.id)
        if context.role not in self.privileged_roles:
            query = query.where(table.c.user_id == context.user_id)

        for row in conn.execute(query).mappings():
            yield row
