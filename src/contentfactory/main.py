"""内容工厂主应用入口."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from contentfactory import __version__
from contentfactory.api import ai, analysis, articles, content, history, insights, wechat, xiaohongshu
from contentfactory.config import get_settings
from contentfactory.exceptions import UpstreamError
from contentfactory.models.database import close_db, init_db

# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """应用生命周期管理."""
    app_settings = get_settings()

    logger.info("正在初始化数据库...")
    await init_db(app_settings.database_url)

    logger.info("内容工厂启动完成！")
    yield

    logger.info("正在关闭...")
    await close_db()
    logger.info("内容工厂已关闭")


app = FastAPI(
    title="内容工厂",
    description="公众号/小红书内容分析、AI 创作与发布",
    version=__version__,
    lifespan=lifespan,
)

# CORS 配置
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册路由
app.include_router(history.router)
app.include_router(insights.router)
app.include_router(analysis.router)
app.include_router(articles.router)
app.include_router(content.router)
app.include_router(wechat.router)
app.include_router(xiaohongshu.router)
app.include_router(ai.router)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """HTTP 错误（含 ApiError）统一格式."""
    body = {
        "success": False,
        "error": exc.detail,
        "code": getattr(exc, "code", None) or f"HTTP_{exc.status_code}",
    }
    body.update(getattr(exc, "extra", None) or {})
    return JSONResponse(content=body, status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(UpstreamError)
async def upstream_exception_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    """外部服务错误，透传上游信息."""
    logger.warning(f"外部服务错误 {request.url.path}: {exc.code} {exc.message}")
    return JSONResponse(
        content={"success": False, "error": exc.message, "code": exc.code},
        status_code=exc.status_code,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """请求验证失败."""
    return JSONResponse(
        content={
            "success": False,
            "error": "请求参数验证失败",
            "code": "INVALID_PARAMETER",
            "details": jsonable_encoder(exc.errors()),
        },
        status_code=status.HTTP_400_BAD_REQUEST,
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """未处理的异常."""
    logger.error(f"未处理的异常 {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        content={"success": False, "error": "服务器内部错误", "code": "INTERNAL_ERROR"},
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


@app.get("/")
async def root() -> dict:
    """根路径."""
    return {
        "name": "内容工厂",
        "version": __version__,
        "description": "公众号/小红书内容分析与发布",
    }


@app.get("/health")
async def health() -> dict:
    """健康检查."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "contentfactory.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
