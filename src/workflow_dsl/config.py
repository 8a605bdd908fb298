"""
运行配置（环境变量）
"""
from dataclasses import dataclass
import os


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclass
class Settings:
    """服务配置"""
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_reload: bool = False
    log_level: str = "INFO"
    strict_names: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """从环境变量读取配置"""
        return cls(
            api_host=os.getenv("API_HOST", "0.0.0.0"),
            api_port=int(os.getenv("API_PORT", "8000")),
            api_reload=_env_bool("API_RELOAD", "false"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            strict_names=_env_bool("WORKFLOW_DSL_STRICT_NAMES", "false")
        )
