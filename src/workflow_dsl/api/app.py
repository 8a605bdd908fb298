"""
FastAPI 应用主文件
"""
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
from typing import Optional

from .routers import dsl, workflows
from .middleware import RequestLoggingMiddleware
from .models import HealthResponse
from .dependencies import app_state, get_workflow_service
from .. import __version__
from ..config import Settings
from ..dsl import DslParser, DslGenerator
from ..serialization import SerializationService
from ..services import WorkflowService
from ..storage import InMemoryWorkflowRepository
from ..validation import create_default_validation_service


logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """创建 FastAPI 应用"""
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """应用生命周期管理"""
        logger.info("Starting Workflow DSL API...")

        serialization = SerializationService(strict_names=settings.strict_names)
        validation = create_default_validation_service()
        repository = InMemoryWorkflowRepository()

        app_state.update({
            "settings": settings,
            "parser": DslParser(strict_names=settings.strict_names),
            "generator": DslGenerator(),
            "validation": validation,
            "serialization": serialization,
            "repository": repository,
            "workflow_service": WorkflowService(repository, serialization, validation)
        })

        logger.info("Workflow DSL API started successfully")

        yield

        logger.info("Shutting down Workflow DSL API...")
        app_state.clear()

    app = FastAPI(
        title="Workflow DSL API",
        description="工作流 DSL 解析、生成与验证 RESTful API",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(dsl.router, prefix="/api/v1/dsl", tags=["dsl"])
    app.include_router(workflows.router, prefix="/api/v1/workflows", tags=["workflows"])

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """全局异常处理器"""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
                "request_id": request.state.request_id if hasattr(request.state, "request_id") else None
            }
        )

    @app.get("/", tags=["root"])
    async def root():
        """API根路径"""
        return {
            "name": "Workflow DSL API",
            "version": __version__,
            "status": "running",
            "docs": "/docs",
            "health": "/health"
        }

    @app.get("/health", response_model=HealthResponse, tags=["root"])
    async def health() -> HealthResponse:
        """健康检查"""
        service: WorkflowService = get_workflow_service()
        return HealthResponse(
            status="healthy",
            version=__version__,
            workflow_count=await service.repository.count()
        )

    return app


app = create_app()
