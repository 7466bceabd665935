from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from image_optimizer.api.routes import health, images
from image_optimizer.config import settings
from image_optimizer.logging_config import setup_logging

__all__ = ["__version__", "app"]

__version__ = "0.1.0"


@asynccontextmanager
async def lifespan(_: FastAPI):
    setup_logging()
    yield


app = FastAPI(title=settings.app_name, version=__version__, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    # Browsers only read custom headers listed here
    expose_headers=[images.STATS_HEADER],
)
app.include_router(health.router)
app.include_router(images.router, prefix=settings.api_prefix)
