from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import model_validator
from pydantic_settings import BaseSettings

load_dotenv()


BASE_DIR = Path(__file__).resolve().parent.parent


class Config(BaseSettings):
    env: Literal["dev", "prod"] = "dev"
    """当前环境，dev 开发环境，prod 生产环境"""
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "DEBUG"
    """日志等级，未显式设置时 dev 为 DEBUG，prod 为 INFO"""

    # FastAPI 配置
    title: str = "Talent Development API"
    """API 服务标题"""
    version: str = "1.0.0"
    """API 服务版本"""
    host: str = "127.0.0.1"
    """API 本地回环地址(IP地址)"""
    port: int = 3002
    """API 服务端口"""

    # CORS 配置
    cors_allow_origins: list[str] = ["*"]
    """允许跨域的源列表，未显式设置时开发环境允许所有来源，生产环境为空"""
    cors_allow_methods: list[str] = ["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"]
    """允许的 HTTP 方法"""
    cors_allow_headers: list[str] = ["Content-Type", "Authorization", "X-Requested-With"]
    """允许的 HTTP 头"""
    cors_allow_credentials: bool = True
    """是否允许携带凭证（如 Cookies）"""

    # 数据库配置
    db_url: str = "sqlite+aiosqlite:///./database.db"
    """orm 数据库连接字符串，生产环境使用 postgresql+asyncpg://"""
    db_echo: bool = False
    """是否输出 SQLAlchemy 执行的 SQL"""
    db_pool_timeout: float = 5.0
    """从连接池获取连接的最长等待时间（秒）"""
    db_statement_timeout: float = 30.0
    """驱动层语句/连接超时时间（秒），超时后事务回滚"""
    db_slow_query_ms: int = 500
    """慢查询阈值（毫秒），超过后以 WARNING 记录"""

    # 测评题库
    catalog_yaml_path: Path = BASE_DIR.parent / "assets" / "saboteurs.yaml"
    """自我破坏者测评题库 YAML 文件"""

    # 错误输出
    expose_error_details: bool = True
    """500 响应是否携带异常信息，未显式设置时仅开发环境开启"""

    @model_validator(mode="after")
    def _apply_env_defaults(self) -> "Config":
        # 只覆盖未通过环境变量或参数显式设置的字段
        if self.env == "prod":
            explicit = self.model_fields_set
            if "log_level" not in explicit:
                self.log_level = "INFO"
            if "cors_allow_origins" not in explicit:
                self.cors_allow_origins = []
            if "expose_error_details" not in explicit:
                self.expose_error_details = False
        return self


config = Config()
