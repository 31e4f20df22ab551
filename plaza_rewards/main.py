import logging
from dotenv import load_dotenv
from fastapi import FastAPI
from mangum import Mangum
from starlette.middleware.cors import CORSMiddleware

from plaza_rewards import containers
from plaza_rewards.config import settings
from plaza_rewards.core.exception_handlers import register_exception_handlers
from plaza_rewards.core.logging_middleware import LoggingMiddleware
from plaza_rewards.logging_config import setup_logging
from plaza_rewards.routers import health_router, plaza_router

load_dotenv("plaza_rewards/.env")

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    setup_logging(settings.LOG_LEVEL, json_logs=settings.LOG_JSON)

    app = FastAPI(title=settings.APP_NAME)
    app.container = containers.Container()  # type: ignore

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware, tenant_header=settings.TENANT_HEADER)
    register_exception_handlers(app)

    app.include_router(health_router.router)
    app.include_router(plaza_router.router, prefix=settings.API_V1_STR)

    logger.info(f"{settings.APP_NAME} initialized ({settings.ENVIRONMENT})")
    return app


app = create_app()

handler = Mangum(app)
