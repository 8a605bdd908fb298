"""
Workflow DSL API 主入口
"""
import logging
import uvicorn
from dotenv import load_dotenv

# 加载环境变量
load_dotenv()

from workflow_dsl.config import Settings

settings = Settings.from_env()

# 配置日志
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# 导入应用
from workflow_dsl.api import app


if __name__ == "__main__":
    if settings.api_reload:
        # 开发模式
        uvicorn.run(
            "workflow_dsl.api:app",
            host=settings.api_host,
            port=settings.api_port,
            reload=True,
            log_level=settings.log_level.lower()
        )
    else:
        uvicorn.run(
            app,
            host=settings.api_host,
            port=settings.api_port,
            log_level=settings.log_level.lower()
        )
