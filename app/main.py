from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import assessment, health
from app.core.config import config
from app.core.error_handlers import register_exception_handlers
from app.core.logger import logger
from app.core.sql import close_db, load_db

logger.info("初始化 Server...")


# 启动/关闭事件
@asynccontextmanager
async def lifespan(app: FastAPI):
    await load_db()
    yield
    logger.info("正在退出...")
    await close_db()
    logger.info("已安全退出")


app = FastAPI(title=config.title, version=config.version, lifespan=lifespan)

# 配置 CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_allow_origins,
    allow_credentials=config.cors_allow_credentials,
    allow_methods=config.cors_allow_methods,
    allow_headers=config.cors_allow_headers,
)

# 异常 -> 统一响应信封
register_exception_handlers(app)

# 注册 API 路由
app.include_router(health.router, tags=["health"])
app.include_router(assessment.router, prefix="/api/assessment", tags=["assessment"])

if __name__ == "__main__":
    import uvicorn

    logger.info(f"服务器地址: http://{config.host}:{config.port}")
    logger.info(f"FastAPI 文档地址: http://{config.host}:{config.port}/docs")
    logger.info(f"OpenAPI JSON 地址: http://{config.host}:{config.port}/openapi.json")
    uvicorn.run(app, host=config.host, port=config.port)
