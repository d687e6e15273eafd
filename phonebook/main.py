# phonebook/main.py

from contextlib import asynccontextmanager
import logging
import time
from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from phonebook.config import DOTENV_LOADED
from phonebook.database import engine, wait_for_database
from phonebook.routers import contacts
from phonebook.services.cache_factory import get_cache, wait_for_cache

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if DOTENV_LOADED:
        logger.info("Loaded environment variables from .env")
    # Startup: the database is required, the cache is optional
    await run_in_threadpool(wait_for_database)
    logger.info("Successfully connected to the database")
    if await run_in_threadpool(wait_for_cache, get_cache()):
        logger.info("Successfully connected to the cache")
    yield


app = FastAPI(lifespan=lifespan)
app.include_router(contacts.router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    logger.info("%s %s -> %s (%.1f ms)", request.method, request.url.path, response.status_code, duration_ms)
    return response


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Database error"})


@app.get("/health")
def health_check():
    cache_status = "connected" if get_cache().ping() else "unavailable"
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"status": "ok", "db": "connected", "cache": cache_status}
    except SQLAlchemyError as e:
        return {"status": "error", "db": str(e), "cache": cache_status}
