import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from technews.config import settings
from technews.errors import register_error_handlers
from technews.logging_config import configure_logging
from technews.middleware import RequestLogMiddleware
from technews.routers import users
from technews.sessions import sessions

VERSION = "1.0.0"

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    configure_logging()
    await sessions.connect()
    logger.info("Tech News API started (env=%s)", settings.APP_ENV)
    yield
    # Shutdown
    await sessions.disconnect()

app = FastAPI(
    title="Tech News API",
    description="Users, their posts, comments and votes, with session login",
    version=VERSION,
    lifespan=lifespan,
)

# Middleware
app.add_middleware(RequestLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Routers
app.include_router(users.router)

@app.get("/health")
async def health():
    return {"status": "healthy", "version": VERSION}
