import logging
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import config
from . import metrics
from .pipeline import media_router, studio_router
from .pipeline.routes import get_credentials, get_session

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s  %(levelname)-7s  %(name)s — %(message)s",
)
# httpx logs every request URL at INFO
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Media agent starting up...")
    metrics.set_gauge("start_time", time.time())
    if not get_credentials().has_credential():
        logger.warning("No Gemini API key configured — the front-end will be asked to select one")
    yield
    logger.info("Media agent shutting down...")
    await get_session().aclose()


app = FastAPI(title="Product Media Agent", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(studio_router)
app.include_router(media_router)


@app.get("/health")
def health_check():
    """Verify the service is running and a key is configured."""
    return {
        "status": "ok",
        "gemini_api_key_set": get_credentials().has_credential(),
        "studio_status": get_session().status.value,
    }


@app.get("/metrics")
def metrics_endpoint():
    return metrics.get_snapshot()


def run():
    uvicorn.run("media_agent.main:app", host="0.0.0.0", port=config.PORT)


if __name__ == "__main__":
    run()
