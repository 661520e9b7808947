"""FastAPI application entry point with lifespan for ES and collector init."""

import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
from core.es_store import ESStore
from core.gamma_client import PolymarketClient
from core.scheduler import CollectorScheduler
from models.settings import CollectorSettings
from services.collector import CollectorService
from services.market_service import MarketService
from api.router import api_router

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- Startup ---
    logger.info("Starting up: connecting to ES at %s", config.ES_HOST)
    store = ESStore(hosts=[config.ES_HOST])

    # Wait for ES
    for attempt in range(30):
        try:
            health = await store.health()
            logger.info("ES cluster status: %s", health.get("status"))
            break
        except Exception:
            if attempt == 29:
                raise
            await asyncio.sleep(2)

    await store.ensure_indices()
    logger.info("All indices ensured")

    settings = CollectorSettings.from_config()
    client = PolymarketClient(timeout=config.HTTP_TIMEOUT_SECONDS)
    collector_svc = CollectorService(store, client, settings)
    market_svc = MarketService(store)

    scheduler = CollectorScheduler(collector_svc, interval_minutes=settings.poll_interval_minutes)
    if config.AUTO_START_COLLECTOR:
        await scheduler.start()

    app.state.store = store
    app.state.client = client
    app.state.collector_service = collector_svc
    app.state.market_service = market_svc
    app.state.scheduler = scheduler

    logger.info("Backend ready")

    yield

    # --- Shutdown ---
    logger.info("Shutting down")
    await scheduler.shutdown()
    await client.close()
    await store.close()


app = FastAPI(title="Polymarket Movement Tracker", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run("main:app", host=config.API_HOST, port=config.API_PORT)
