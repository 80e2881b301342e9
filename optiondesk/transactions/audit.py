"""
Role-elevation audit gateway
"""

from typing import List

from sqlalchemy.engine import Connection

from ..backends.base import StoreBackend
from ..database.connection import DatabaseManager
from ..errors import NotFoundError, StoreError, describe_driver_error
from ..records import AuditLogEntry, RoleContext


class AuditGateway:
    """
    审计日志网关

    在同一个连接上依次完成：
    1. 查询用户角色（不存在则 NotFoundError，后续步骤不执行）
    2. 把角色写入该连接的会话上下文
    3. 读取该角色可见的审计日志

    角色上下文只属于这个物理连接，连接下次被借出时会被清空。
    """

    def __init__(self, db_manager: DatabaseManager, backend: StoreBackend):
        self.db_manager = db_manager
        self.backend = backend

    def get_audit_logs_for_user(self, user_id: int) -> List[AuditLogEntry]:
        with self.db_manager.connection_scope() as conn:
            context = RoleContext(user_id=user_id, role=self._resolve_role(conn, user_id))
            self._propagate_role(conn, context)
            return self._fetch_visible_logs(conn)

    def _resolve_role(self, conn: Connection, user_id: int) -> str:
        try:
            role = self.backend.resolve_role(conn, user_id)
        except self.backend.driver_errors as e:
            raise StoreError("resolve user role", describe_driver_error(e)) from e

        if role is None:
            raise NotFoundError("User", user_id)
        return role

    def _propagate_role(self, conn: Connection, context: RoleContext) -> None:
        try:
            self.backend.set_session_role(conn, context)
        except self.backend.driver_errors as e:
            raise StoreError("set session role", describe_driver_error(e)) from e

    def _fetch_visible_logs(self, conn: Connection) -> List[AuditLogEntry]:
        try:
            return [AuditLogEntry.from_row(row) for row in self.backend.iter_audit_logs(conn)]
        except self.backend.driver_errors as e:
            raise StoreError("read audit logs", describe_driver_error(e)) from e
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError("read audit logs", f"malformed audit row: {e}") from e
