#!/usr/bin/env python3
"""
Cachegate - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Initializes modules
3. Runs the API server

All business logic is in the modules, following black box principles.
"""

import logging
import logging.config as log_config
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional, Tuple

import redis.asyncio as redis
import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Header, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cachegate.config.provider import ConfigProvider, EnvConfigProvider
from cachegate.logging_config import get_logging_config
from cachegate.modules.api import (
    AuthResponse,
    CacheClearResponse,
    CacheStatsResponse,
    CacheTestResponse,
    HealthResponse,
    JobDispatchResponse,
    MessageResponse,
    UserResponse,
)
from cachegate.modules.auth import (
    AuthenticationError,
    AuthenticationService,
    AuthFactory,
    AuthModule,
    ValidationError,
)

# Import modules through their black box interfaces
from cachegate.modules.cache import CacheModule
from cachegate.modules.config import get_config
from cachegate.modules.jobs import JobModule, generate_task_id
from cachegate.modules.storage import StorageModule

# Get configuration
config = get_config()

# Configure logging with health check suppression
log_config.dictConfig(get_logging_config(config.get("log_level")))
logger = logging.getLogger("cachegate.api")

# Configuration provider (centralized config access)
config_provider: ConfigProvider = EnvConfigProvider()

# Module instances (initialized at startup)
storage: Optional[StorageModule] = None
redis_client: Optional[redis.Redis] = None
auth_module: Optional[AuthModule] = None
auth_service: Optional[AuthenticationService] = None
cache_module: Optional[CacheModule] = None
job_module: Optional[JobModule] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle - initialize and cleanup resources.
    """
    global storage, redis_client, auth_module, auth_service, cache_module, job_module

    # Startup
    logger.info("Starting Cachegate API...")

    storage = StorageModule.from_config(config)
    redis_client = await storage.connect()

    # Build authentication stack via factory (dependency injection)
    auth_module, auth_service = AuthFactory.build(
        config_provider, redis_client, token_ttl=config.get("token_ttl")
    )
    cache_module = CacheModule(
        redis_client, ttl=config.get("cache_ttl"), key=config.get("cache_key")
    )
    job_module = JobModule(
        redis_client,
        steps=config.get("job_steps"),
        step_seconds=config.get("job_step_seconds"),
    )

    logger.info("Cachegate API started successfully")

    yield

    # Shutdown
    logger.info("Shutting down Cachegate API...")

    # Jobs are never cancelled; let in-flight ones finish
    await job_module.drain()
    await storage.disconnect()
    logger.info("Cachegate API shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Cachegate API",
    description="Token-authenticated cache and background job demo",
    version="1.0.0",
    lifespan=lifespan,
)

api_config = config_provider.get_api_config()
app.add_middleware(
    CORSMiddleware,
    allow_origins=api_config.cors_origins,
    allow_credentials="*" not in api_config.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

router = APIRouter()


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


async def read_json(request: Request) -> Any:
    """Request body as JSON; an empty or malformed body reads as {}."""
    try:
        return await request.json()
    except ValueError:
        return {}


# Dependency injection helpers
async def verify_bearer(
    authorization: Optional[str] = Header(None, description="Bearer token for authentication")
) -> Tuple[str, dict]:
    """
    Verify the bearer token using the authentication service.

    Returns:
        Tuple of (token, user)
    """
    if not auth_service:
        raise RuntimeError("Service not initialized")

    result = await auth_service.authenticate(authorization)
    if not result.ok:
        raise AuthenticationError(result.error or "Unauthenticated.")

    return result.token, result.user


# Auth Endpoints


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(request: Request):
    """
    Register a new user and return their first token.

    Returns:
        201: User created
        422: Validation failed
        500: Registration failed
    """
    data = await read_json(request)

    try:
        return await auth_module.register(data)
    except ValidationError:
        raise
    except Exception as e:
        logger.error(f"Registration failed: {e}")
        return JSONResponse(
            status_code=500, content={"message": "Registration failed", "error": str(e)}
        )


@router.post("/login", response_model=AuthResponse)
async def login(request: Request):
    """
    Log in with email and password; every login mints a fresh token.

    Returns:
        200: Logged in
        401: Invalid credentials
        422: Validation failed
    """
    data = await read_json(request)

    try:
        return await auth_module.login(data)
    except (ValidationError, AuthenticationError):
        raise
    except Exception as e:
        logger.error(f"Login failed: {e}")
        return JSONResponse(status_code=500, content={"message": "Login failed", "error": str(e)})


@router.post("/logout", response_model=MessageResponse)
async def logout(auth_info: Tuple[str, dict] = Depends(verify_bearer)):
    """
    Revoke the token used for this request.

    Returns:
        200: Logged out
        401: Unauthorized
    """
    token, _ = auth_info
    await auth_module.logout(token)
    return {"message": "Successfully logged out"}


@router.get("/user", response_model=UserResponse)
async def current_user(auth_info: Tuple[str, dict] = Depends(verify_bearer)):
    """
    Get the user owning the bearer token.

    Returns:
        200: User details
        401: Unauthorized
    """
    _, user = auth_info
    return {"user": user}


# Cache Endpoints


@router.post("/test-cache", response_model=CacheTestResponse)
async def probe_cache(auth_info: Tuple[str, dict] = Depends(verify_bearer)):
    """
    Probe the test cache, creating a 60-second entry when it is empty.

    Returns:
        200: Probe result (cache_hit or cache_miss)
        401: Unauthorized
        500: Cache test failed
    """
    try:
        result = await cache_module.probe()
    except Exception as e:
        logger.error(f"Cache test failed: {e}")
        return JSONResponse(
            status_code=500, content={"message": "Cache test failed", "error": str(e)}
        )

    return {"message": "Cache test executed", "result": result, "timestamp": now_iso()}


@router.get("/cache-stats", response_model=CacheStatsResponse, response_model_exclude_none=True)
async def cache_stats(auth_info: Tuple[str, dict] = Depends(verify_bearer)):
    """
    Get age and remaining lifetime of the test cache entry.

    Returns:
        200: Cache statistics
        401: Unauthorized
        500: Failed to get cache statistics
    """
    try:
        stats = await cache_module.stats()
    except Exception as e:
        logger.error(f"Failed to get cache statistics: {e}")
        return JSONResponse(
            status_code=500,
            content={"message": "Failed to get cache statistics", "error": str(e)},
        )

    return {"message": "Cache statistics retrieved", "stats": stats, "timestamp": now_iso()}


@router.delete("/clear-cache", response_model=CacheClearResponse)
async def clear_cache(auth_info: Tuple[str, dict] = Depends(verify_bearer)):
    """
    Delete the test cache entry.

    Returns:
        200: success tells whether an entry was deleted
        401: Unauthorized
        500: Failed to clear cache
    """
    try:
        cleared = await cache_module.clear()
    except Exception as e:
        logger.error(f"Failed to clear cache: {e}")
        return JSONResponse(
            status_code=500, content={"message": "Failed to clear cache", "error": str(e)}
        )

    return {
        "message": "Cache cleared successfully" if cleared else "Cache was already empty",
        "success": cleared,
        "timestamp": now_iso(),
    }


# Job Endpoints


@router.post("/test-job", response_model=JobDispatchResponse)
async def dispatch_test_job():
    """
    Dispatch a background job that reports progress for ten seconds.

    Returns:
        200: Job dispatched
    """
    task_id = job_module.dispatch(generate_task_id())
    return {"message": "API job dispatched successfully", "task_id": task_id}


# Health/Monitoring Endpoints


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Minimal unauthenticated liveness check.

    Returns:
        200: Service is running
    """
    return {"ok": True, "time": now_iso()}


# The single-page client calls the API under /api
app.include_router(router)
app.include_router(router, prefix="/api")


# Error handlers


@app.exception_handler(ValidationError)
async def validation_error_handler(request, exc: ValidationError):
    """Handle input validation errors."""
    logger.info(f"Validation failed on {request.url.path}: {list(exc.errors)}")
    return JSONResponse(status_code=422, content={"message": exc.message, "errors": exc.errors})


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request, exc: AuthenticationError):
    """Handle missing/invalid tokens and bad credentials."""
    return JSONResponse(status_code=401, content={"message": exc.message})


@app.exception_handler(redis.RedisError)
async def redis_error_handler(request, exc):
    """Handle Redis failures not caught by an endpoint (e.g. during the bearer check)."""
    logger.error(f"Storage error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500, content={"message": "Storage operation failed", "error": str(exc)}
    )


def run():
    """Serve the API with uvicorn using the configured host and port."""
    uvicorn.run(
        "cachegate.main:app",
        host=config.get("host"),
        port=config.get("port"),
        log_level=config.get("log_level").lower(),
        reload=config.get("debug"),
        log_config=get_logging_config(config.get("log_level")),
    )


if __name__ == "__main__":
    run()
