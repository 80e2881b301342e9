"""
Configuration loader and management
配置加载和管理
"""

import os
import yaml
from pathlib import Path
from typing import Any, List, Optional, Tuple
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class DatabaseConfig(BaseModel):
    """数据库与连接池配置"""
    url: str = "sqlite:///./Data/sql/optiondesk.db"
    backend: str = "sql"           # sql (SQLite/PostgreSQL) / oracle
    pool_min: int = Field(2, ge=1)
    pool_max: int = Field(10, ge=1)
    acquire_timeout: float = Field(30.0, ge=0)   # 连接池耗尽时最多等待的秒数
    shutdown_timeout: float = Field(10.0, ge=0)  # 关闭时等待借出连接归还的秒数
    pool_recycle: int = 1800
    echo: bool = False

    @model_validator(mode="after")
    def _check_pool_bounds(self) -> "DatabaseConfig":
        if self.pool_max < self.pool_min:
            raise ValueError(
                f"pool_max ({self.pool_max}) must be >= pool_min ({self.pool_min})"
            )
        if self.backend not in ("sql", "oracle"):
            raise ValueError(f"Unknown database backend: {self.backend}")
        return self


class AuditConfig(BaseModel):
    """审计日志可见性配置"""
    privileged_roles: List[str] = ["admin", "auditor"]


class LoggingConfig(BaseModel):
    """日志配置"""
    level: str = "INFO"
    file: Optional[str] = None

    @field_validator("level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {value} (expected one of {', '.join(LOG_LEVELS)})")
        return level


class ApiConfig(BaseModel):
    """HTTP服务配置"""
    host: str = "0.0.0.0"
    port: int = 9999
    cors_origins: List[str] = ["*"]


class Config(BaseSettings):
    """全局配置类"""
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    audit: AuditConfig = Field(default_factory=AuditConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)

    model_config = SettingsConfigDict(
        env_prefix="OPTIONDESK_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # 忽略额外的环境变量
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # OPTIONDESK_* 环境变量优先于 YAML（YAML 以构造参数传入）
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def load_config(config_path: Optional[str] = None) -> Config:
    """
    加载配置文件

    Args:
        config_path: 配置文件路径，默认为 optiondesk/config/config.yaml；
            默认文件不存在时只使用环境变量和默认值；
            OPTIONDESK_<段落>__<字段> 环境变量覆盖文件中的值

    Returns:
        Config: 配置对象
    """
    if config_path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            return Config()
        config_path = DEFAULT_CONFIG_PATH

    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        config_data = yaml.safe_load(f) or {}

    # 替换环境变量
    config_data = _replace_env_vars(config_data)

    # 只传 YAML 里出现的段落（保持为字典），由 pydantic-settings 与环境变量逐字段合并
    sections = {
        name: data
        for name, data in config_data.items()
        if name in Config.model_fields and data is not None
    }
    return Config(**sections)


def _replace_env_vars(data: Any) -> Any:
    """
    递归替换配置中的环境变量
    ${VAR_NAME} -> os.getenv('VAR_NAME')
    """
    if isinstance(data, dict):
        return {k: _replace_env_vars(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_replace_env_vars(item) for item in data]
    elif isinstance(data, str):
        if data.startswith('${') and data.endswith('}'):
            var_name = data[2:-1]
            return os.getenv(var_name, '')
        return data
    else:
        return data


# 全局配置实例
_config: Optional[Config] = None


def get_config() -> Config:
    """获取全局配置实例"""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(config_path: Optional[str] = None) -> Config:
    """重新加载配置"""
    global _config
    _config = load_config(config_path)
    return _config
