"""
Unit tests for optiondesk/backends/oracle_backend.py

The PL/SQL package is not available here; calls are checked against mocks.
"""

from unittest.mock import MagicMock

import pytest

pytest.importorskip("oracledb")

from optiondesk.backends import BREAKEVEN, RISK_RATE  # noqa: E402
from optiondesk.backends.oracle_backend import OracleBackend  # noqa: E402
from optiondesk.database import SESSION_CONTEXT_KEY  # noqa: E402
from optiondesk.records import RoleContext  # noqa: E402


@pytest.fixture
def conn():
    connection = MagicMock()
    connection.info = {}
    return connection


class TestOracleBackend:
    """测试 transaction_pkg 调用"""

    def test_call_metric(self, conn):
        """测试指标函数通过 PL/SQL 块调用，读取 OUT 参数"""
        conn.execute.return_value.out_parameters = {"result": 51.0}
        params = {'strategy_type': "Protective Put", 'current_price': 48.0,
                  'strike_price': 50.0, 'premium': 3.0}

        value = OracleBackend().call_metric(conn, BREAKEVEN, params)

        assert value == 51.0
        statement, bound = conn.execute.call_args[0]
        assert "transaction_pkg.calculate_breakeven" in str(statement)
        assert bound == params

    def test_unknown_function_rejected(self, conn):
        """测试只允许调用两个指标函数"""
        with pytest.raises(ValueError):
            OracleBackend().call_metric(conn, "drop_everything", {})
        conn.execute.assert_not_called()

    def test_insert_returns_out_id(self, conn):
        """测试写入返回 OUT 参数中的ID"""
        conn.execute.return_value.out_parameters = {"transaction_id": 17}

        transaction_id = OracleBackend().insert_transaction(conn, {'user_id': 1})

        assert transaction_id == 17
        assert "transaction_pkg.insert_transaction" in str(conn.execute.call_args[0][0])

    def test_set_session_role(self, conn):
        """测试设置角色同时记录在连接上"""
        context = RoleContext(user_id=2, role="admin")

        OracleBackend().set_session_role(conn, context)

        statement, bound = conn.execute.call_args[0]
        assert "transaction_pkg.set_user_role" in str(statement)
        assert bound == {"user_id": 2, "role": "admin"}
        assert conn.info[SESSION_CONTEXT_KEY] == context

    def test_reset_session(self):
        """测试借出连接时清理角色"""
        dbapi_connection = MagicMock()
        cursor = dbapi_connection.cursor.return_value

        OracleBackend().reset_session(dbapi_connection)

        cursor.callproc.assert_called_once_with("transaction_pkg.clear_user_role")
        cursor.close.assert_called_once()

    def test_ref_cursor_rows_lowercased(self, conn):
        """测试游标结果转换为小写列名的字典"""
        cursor = conn.connection.cursor.return_value
        result_set = MagicMock()
        result_set.description = [("TRANSACTION_ID",), ("USER_ID",)]
        result_set.__iter__.return_value = iter([(1, 1), (2, 1)])
        cursor.var.return_value.getvalue.return_value = result_set

        rows = list(OracleBackend().iter_user_transactions(conn, 1))

        assert rows == [{"transaction_id": 1, "user_id": 1}, {"transaction_id": 2, "user_id": 1}]
        assert cursor.callproc.call_args[0][0] == "transaction_pkg.get_user_transactions"
        result_set.close.assert_called_once()
        cursor.close.assert_called_once()

    def test_risk_rate_function_name(self, conn):
        conn.execute.return_value.out_parameters = {"result": 0.1}
        OracleBackend().call_metric(conn, RISK_RATE, {})
        assert "transaction_pkg.calculate_risk_rate" in str(conn.execute.call_args[0][0])
