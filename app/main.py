# app/main.py

import logging
from typing import AsyncGenerator
from contextlib import asynccontextmanager
from arq import cron
from arq.connections import create_pool, RedisSettings

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from fastapi import FastAPI, Depends, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware

from app import API_PREFIX
from app.core.config import settings
from app.core.database import create_db_and_tables, engine, get_session
from app.core.exceptions import register_exception_handlers

# Task modules
from app.core import tasks as core_tasks
from app.domains.inv import tasks as inv_tasks

# Domain routers
from app.domains.usr.routers import router as usr_router
from app.domains.inv.routers import router as inv_router
from app.domains.prj.routers import router as prj_router
from app.domains.tpl.routers import router as tpl_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Functions the ARQ worker can run
worker_functions = [
    core_tasks.health_check_database_task,
    inv_tasks.rebuild_inventory_balances,
]


# ARQ worker settings: `arq app.main.ArqWorkerSettings`
class ArqWorkerSettings:
    redis_settings = RedisSettings.from_dsn(settings.REDIS_URL or "redis://localhost:6379")
    functions = worker_functions
    cron_jobs = [
        cron(
            core_tasks.health_check_database_task,
            name="daily_db_health_check",
            hour=0,
            minute=0,
            timeout=300,
            keep_result=600,
        ),
        cron(
            inv_tasks.rebuild_inventory_balances,
            name="nightly_inventory_balance_rebuild",
            hour=2,
            minute=0,
            timeout=1800,
            keep_result=3600,
        ),
    ]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application startup and shutdown: database and the ARQ Redis pool.
    """
    logger.info("Starting %s (%s)...", settings.APP_NAME, settings.APP_ENV)
    try:
        if settings.is_sqlite:
            await create_db_and_tables()
            logger.info("SQLite database tables created.")
        else:
            logger.info("Database schema is managed by Alembic migrations.")

        if settings.REDIS_URL:
            app.state.redis = await create_pool(ArqWorkerSettings.redis_settings)
            logger.info("ARQ Redis connection pool created.")
        else:
            app.state.redis = None
            logger.info("REDIS_URL not set; background jobs will run inline.")

    except Exception as e:
        logger.error("Error during application startup: %s", e)
        raise

    yield

    logger.info("Shutting down %s...", settings.APP_NAME)
    try:
        if app.state.redis:
            await app.state.redis.close()
            logger.info("ARQ Redis connection pool closed.")

        await engine.dispose()
        logger.info("Database connection pool closed.")

    except Exception as e:
        logger.error("Error during application shutdown: %s", e)


app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(usr_router, prefix=f"{API_PREFIX}/usr", tags=["User Management"])
app.include_router(inv_router, prefix=f"{API_PREFIX}/inv", tags=["Inventory Management"])
app.include_router(prj_router, prefix=f"{API_PREFIX}/prj", tags=["Project Management"])
app.include_router(tpl_router, prefix=f"{API_PREFIX}/tpl", tags=["Product Templates"])


@app.get("/", summary="API Root", response_description="Welcome message and documentation link.")
async def read_root():
    return {"message": f"Welcome to {settings.APP_NAME}. Visit /docs for interactive API documentation."}


@app.get("/health-check", summary="Health Check", response_description="Status of the application and database connection.")
async def health_check(session: AsyncSession = Depends(get_session)):
    """
    Checks that the database answers a trivial query.
    """
    try:
        result = await session.exec(select(1))
        if result.first():
            return {"status": "ok", "database_connection": "successful"}
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database health check failed: No result from test query"
        )
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Database connection error during health check: {e}"
        )
