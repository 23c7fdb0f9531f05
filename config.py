"""
配置管理模块
使用Pydantic Settings从环境变量加载配置
"""

from typing import List, Literal
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    应用配置类
    从环境变量加载配置，支持类型转换和验证
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # 未声明的 env 变量忽略，不抛出校验错误
    )

    # 应用配置
    app_host: str = "0.0.0.0"  # 应用主机地址，默认0.0.0.0（允许外部访问）
    app_port: int = 8000  # 应用端口，默认8000
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "INFO",
        validation_alias="LOG_LEVEL",
        description="日志级别",
    )

    # CORS跨域配置
    cors_origins: List[str] = ["*"]  # 允许访问的域名列表

    # Geohash 覆盖配置（未显式指定 precision 时的自动选择范围）
    geohash_auto_precision_max: int = Field(
        6,
        ge=1,
        le=12,
        validation_alias="GEOHASH_AUTO_PRECISION_MAX",
        description="自动选择时允许的最大 geohash 长度（点状几何直接使用该值）",
    )
    geohash_auto_max_diagonal_cells: float = Field(
        64.0,
        gt=0,
        validation_alias="GEOHASH_AUTO_MAX_DIAGONAL_CELLS",
        description="自动选择时外包框对角线最多跨越的网格数",
    )


settings = Settings()
