"""
配置加载模块：支持 .env、环境变量、工作目录 config.json（或 CONFIG_FILE 指定）多来源合并。
公开接口：
- Config: 读取配置的设置类
- config: Config 的单例实例
内部方法：
- Config.settings_customise_sources: 自定义配置来源顺序
- Config.normalize_log_level: 统一日志级别为大写
- JsonFileSettingsSource: config.json 配置来源
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, PydanticBaseSettingsSource


def _read_config_json() -> Dict[str, Any]:
    """读取 CONFIG_FILE 或工作目录下的 config.json；文件缺失或内容不合法时视为空配置。"""
    cfg_path = os.environ.get("CONFIG_FILE")
    path = Path(cfg_path) if cfg_path else Path.cwd() / "config.json"
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


class JsonFileSettingsSource(PydanticBaseSettingsSource):
    """config.json 配置来源，只在构造时读取一次文件。"""

    def __init__(self, settings_cls: type[BaseSettings]):
        super().__init__(settings_cls)
        self._data = _read_config_json()

    def get_field_value(self, field, field_name):  # type: ignore[override]
        return self._data.get(field_name), field_name, False

    def __call__(self) -> Dict[str, Any]:
        return dict(self._data)


class Config(BaseSettings):
    # 签发者（根 CA）私钥与证书的 PEM 文件路径
    issuer_private_key_path: str = "certificates/MyRootCA.key"
    issuer_certificate_path: str = "certificates/MyRootCA.pem"

    # 开发模式：文件不存在时自动生成自签根 CA
    issuer_auto_create: bool = False
    dev_issuer_organization: str = "Fake NCA"
    dev_issuer_country: str = "DE"
    dev_issuer_common_name: str = "Fake QWAC Root CA"

    # 批量签发输出目录
    target_folder: str = "certs"
    workers: int = Field(default=1, ge=1)
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: Any) -> str:
        if value is None or value == "":
            return "INFO"
        return str(value).strip().upper()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """自定义配置来源顺序：入参 > 环境变量 > .env > config.json > secrets。"""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            JsonFileSettingsSource(settings_cls),
            file_secret_settings,
        )


config = Config()
