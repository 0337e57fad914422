"""
应用配置模块

使用 Pydantic Settings 管理所有环境变量和配置。
配置从项目根目录的 .env 文件读取，支持类型验证和默认值。

关键概念：
- BaseSettings: Pydantic 的配置基类，自动从环境变量读取
- computed_field: 计算字段，根据其他字段动态生成
"""
from typing import Annotated, Any, Literal  # 类型注解工具

from pydantic import (
    AnyUrl,  # URL 类型验证
    BeforeValidator,  # 字段验证前的转换器
    Field,  # 字段约束
    HttpUrl,  # HTTP URL 类型验证
    computed_field,  # 计算字段装饰器
)
from pydantic_settings import BaseSettings, SettingsConfigDict  # 配置管理


def parse_cors(v: Any) -> list[str] | str:
    """
    解析 CORS 配置值

    支持两种格式：
    1. 逗号分隔的字符串："http://localhost:3000,http://localhost:3001"
    2. 列表格式：["http://localhost:3000", "http://localhost:3001"]

    Raises:
        ValueError: 当输入格式不正确时
    """
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    """
    应用配置类

    配置来源优先级：
    1. 环境变量（最高优先级）
    2. .env 文件
    3. 代码中的默认值（最低优先级）
    """
    model_config = SettingsConfigDict(
        env_file="../.env",
        env_ignore_empty=True,  # 忽略空的环境变量
        extra="ignore",  # 忽略未定义的额外字段
    )
    API_V1_STR: str = "/api/v1"  # API 版本前缀
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    LOG_LEVEL: str = "INFO"  # 日志级别

    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_cors)
    ] = []

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        """获取所有 CORS 允许的源（去除尾部斜杠）"""
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS]

    PROJECT_NAME: str = "Zabava"
    SENTRY_DSN: HttpUrl | None = None

    # Redis 键值存储配置（积分/到访数据的唯一数据源）
    REDIS_HOST: str = "localhost"  # Redis 服务器地址
    REDIS_PORT: int = 6379  # Redis 端口
    REDIS_DB: int = 0  # Redis 数据库编号（0-15）
    REDIS_PASSWORD: str | None = None  # Redis 密码（可选）
    REDIS_URL: str | None = None  # 完整连接串（如 rediss://...），设置后覆盖 host/port

    # 到访账本读取配置
    LEDGER_FETCH_CONCURRENCY: int = Field(default=16, ge=1)  # 单次请求内最大并发读取数


# 创建全局配置实例，整个应用共享
settings = Settings()  # type: ignore
