"""
FastAPI 应用入口点。
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from src.qwac.certificate.router import router as certificate_router
from src.qwac.config import config
from src.qwac.issuer.core import load_or_create_issuer_data


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 签发者只在启动时加载一次，之后只读
    try:
        app.state.issuer_data = load_or_create_issuer_data(config)
    except Exception as e:
        logger.error(f"启动时加载签发者失败：{e}")
        raise
    app.state.workers = config.workers
    try:
        yield
    finally:
        logger.info("应用关闭")
        app.state.issuer_data = None


app = FastAPI(title="QWAC Certificate Generator", lifespan=lifespan)

app.include_router(certificate_router, prefix="/v1")

logger.info(f"config: {config.model_dump_json(indent=4)}")
