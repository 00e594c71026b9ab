import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.cache import cache
from app.config import settings
from app.database import dispose_engine
from app.errors import install_exception_handlers
from app.middleware import RequestLogMiddleware
from app.routers import articles, profiles, tags, users

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup; the app keeps working without Redis (tag cache disabled).
    logger.info("Starting Conduit API (env=%s)", settings.APP_ENV)
    try:
        await cache.connect()
    except Exception as exc:
        logger.warning("Cache unavailable: %s", exc)
    yield
    # Shutdown
    await cache.disconnect()
    await dispose_engine()

app = FastAPI(
    title="Conduit API",
    description="Blogging API: users, profiles, articles, comments and tags",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(RequestLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_exception_handlers(app)

# Routers
app.include_router(users.router, prefix=settings.API_PREFIX)
app.include_router(profiles.router, prefix=settings.API_PREFIX)
app.include_router(articles.router, prefix=settings.API_PREFIX)
app.include_router(tags.router, prefix=settings.API_PREFIX)

@app.get("/")
async def status():
    return {"up": True}
