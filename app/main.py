import logging
from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool
import app.core.database as database
from app.core.config import settings
from app.routers import room, realtime
from app.services.broadcast import broadcast_bus
from app.services.seed import seed_service
from app.services.websocket import manager
from fastapi.middleware.cors import CORSMiddleware
from fastapi import APIRouter
from contextlib import asynccontextmanager

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


def _bootstrap_database():
    if settings.AUTO_CREATE_TABLES:
        database.init_db()
    if settings.SEED_ON_STARTUP:
        db = database.SessionLocal()
        try:
            seed_service.seed_if_empty(db)
        finally:
            db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup: preparing database")
    try:
        await run_in_threadpool(_bootstrap_database)
    except Exception:
        # keep serving: store errors are handled per request from here on
        logger.exception("Error initializing database")

    broadcast_bus.start()
    manager.start()
    yield
    logger.info("Application shutdown: stopping broadcast dispatcher and heartbeat")
    await manager.stop()
    await broadcast_bus.stop()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    lifespan=lifespan,
)

# Set all CORS enabled origins
if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["*"],
    )


@app.get("/")
async def root():
    return {
        "message": f"Welcome to {settings.PROJECT_NAME}",
        "version": settings.VERSION,
        "docs_url": "/docs"
    }

@app.get("/health")
async def health_check():
    return {"status": "healthy"}

api_router = APIRouter()

api_router.include_router(room.router)
api_router.include_router(realtime.router)

app.include_router(api_router, prefix=settings.API_V1_STR)


def run():
    import uvicorn

    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT)
