"""
Unit tests for optiondesk/config/config_loader.py
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from optiondesk.backends import SqlBackend, create_backend
from optiondesk.config import Config, DatabaseConfig, LoggingConfig, load_config


class TestDatabaseConfig:
    """测试数据库配置"""

    def test_defaults(self):
        """测试默认连接池参数"""
        config = DatabaseConfig()
        assert config.pool_min == 2
        assert config.pool_max == 10
        assert config.acquire_timeout == 30.0
        assert config.shutdown_timeout == 10.0
        assert config.backend == "sql"

    def test_pool_max_below_min_rejected(self):
        """测试 pool_max < pool_min"""
        with pytest.raises(PydanticValidationError):
            DatabaseConfig(pool_min=5, pool_max=2)

    def test_pool_min_must_be_positive(self):
        """测试 pool_min 必须 >= 1"""
        with pytest.raises(PydanticValidationError):
            DatabaseConfig(pool_min=0)

    def test_unknown_backend_rejected(self):
        """测试未知后端"""
        with pytest.raises(PydanticValidationError):
            DatabaseConfig(backend="mongodb")


class TestLoadConfig:
    """测试加载YAML配置"""

    def test_load_yaml(self, tmp_path):
        """测试从YAML加载"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "database:\n"
            "  url: sqlite:///./test.db\n"
            "  pool_min: 3\n"
            "  pool_max: 6\n"
            "audit:\n"
            "  privileged_roles: [auditor]\n"
            "api:\n"
            "  port: 8080\n",
            encoding="utf-8",
        )

        config = load_config(str(config_file))

        assert config.database.pool_min == 3
        assert config.database.pool_max == 6
        assert config.audit.privileged_roles == ["auditor"]
        assert config.api.port == 8080
        assert config.logging.level == "INFO"

    def test_env_var_substitution(self, tmp_path, monkeypatch):
        """测试 ${VAR} 替换为环境变量"""
        monkeypatch.setenv("OPTIONDESK_TEST_DB_URL", "sqlite:///./from_env.db")
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "database:\n"
            "  url: ${OPTIONDESK_TEST_DB_URL}\n",
            encoding="utf-8",
        )

        config = load_config(str(config_file))
        assert config.database.url == "sqlite:///./from_env.db"

    def test_empty_file_uses_defaults(self, tmp_path):
        """测试空文件使用默认值"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("", encoding="utf-8")

        config = load_config(str(config_file))
        assert config.database.pool_max == 10
        assert config.api.port == 9999

    def test_missing_file(self, tmp_path):
        """测试指定的配置文件不存在"""
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "missing.yaml"))

    def test_bundled_default_config(self):
        """测试包内默认配置可以加载"""
        config = load_config()
        assert isinstance(config, Config)
        assert config.database.backend == "sql"
        assert "admin" in config.audit.privileged_roles


class TestCreateBackend:
    """测试按配置选择后端"""

    def test_sql_backend(self):
        config = Config(database=DatabaseConfig(backend="sql"))
        backend = create_backend(config)
        assert isinstance(backend, SqlBackend)
        assert backend.privileged_roles == frozenset(config.audit.privileged_roles)

    def test_oracle_backend(self):
        pytest.importorskip("oracledb")
        from optiondesk.backends.oracle_backend import OracleBackend

        config = Config(database=DatabaseConfig(backend="oracle"))
        assert isinstance(create_backend(config), OracleBackend)


class TestLoggingConfig:
    """测试日志配置"""

    def test_level_normalized(self):
        """测试级别名称不区分大小写"""
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_unknown_level_rejected(self):
        """测试未知级别在加载配置时就报错"""
        with pytest.raises(PydanticValidationError, match="Unknown log level"):
            LoggingConfig(level="VERBOSE")

    def test_unknown_level_in_yaml_rejected(self, tmp_path):
        """测试YAML中的未知级别"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("logging:\n  level: VERBOSE\n", encoding="utf-8")

        with pytest.raises(PydanticValidationError):
            load_config(str(config_file))


class TestEnvironmentOverrides:
    """测试 OPTIONDESK_ 环境变量覆盖配置文件"""

    def test_overrides_bundled_config(self, monkeypatch):
        """测试环境变量覆盖包内默认配置"""
        monkeypatch.setenv("OPTIONDESK_DATABASE__URL", "sqlite:///./from_env.db")
        monkeypatch.setenv("OPTIONDESK_API__PORT", "8123")

        config = load_config()

        assert config.database.url == "sqlite:///./from_env.db"
        assert config.api.port == 8123
        # 未覆盖的字段仍来自配置文件
        assert config.database.pool_max == 10

    def test_overrides_single_field_of_yaml_section(self, tmp_path, monkeypatch):
        """测试只覆盖一个字段，同一段落的其他字段保留YAML中的值"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "database:\n"
            "  url: sqlite:///./yaml.db\n"
            "  pool_min: 3\n"
            "  pool_max: 6\n",
            encoding="utf-8",
        )
        monkeypatch.setenv("OPTIONDESK_DATABASE__POOL_MAX", "8")

        config = load_config(str(config_file))

        assert config.database.pool_max == 8
        assert config.database.pool_min == 3
        assert config.database.url == "sqlite:///./yaml.db"

    def test_override_still_validated(self, monkeypatch):
        """测试环境变量的值同样经过校验"""
        monkeypatch.setenv("OPTIONDESK_LOGGING__LEVEL", "VERBOSE")

        with pytest.raises(PydanticValidationError):
            load_config()
