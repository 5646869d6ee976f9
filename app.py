import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import config
from db import create_db_and_tables, engine
from middleware.security_headers import SecurityHeadersMiddleware
from processing.processing import processing_router
from web.admin_router import admin_router
from web.api_router import api_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown."""
    # Startup
    await create_db_and_tables()
    logging.info(f"[Startup] Database ready, {config.STORE_NAME} API running ({config.RUNTIME_ENVIRONMENT.value})")

    yield

    # Shutdown
    logging.warning('Shutting down..')
    await engine.dispose()
    logging.warning('Bye!')


app = FastAPI(lifespan=lifespan)

if config.SECURITY_HEADERS_ENABLED:
    app.add_middleware(SecurityHeadersMiddleware)
    logging.info("[Startup] Security headers middleware enabled")
else:
    logging.debug("[Startup] Security headers middleware disabled")

if config.CORS_ALLOWED_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ALLOWED_ORIGINS,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )
    logging.info(f"[Startup] CORS middleware enabled for origins: {config.CORS_ALLOWED_ORIGINS}")
else:
    logging.debug("[Startup] CORS middleware disabled (no allowed origins configured)")

app.include_router(processing_router)
app.include_router(api_router)
app.include_router(admin_router)


# Health check endpoint (for Docker container monitoring)
@app.get("/health")
async def health_check():
    """Health check endpoint for Docker healthcheck."""
    return {"status": "healthy"}


@app.exception_handler(Exception)
async def exception_handler(request: Request, exc: Exception):
    logging.error(f"Unhandled exception on {request.method} {request.url.path}: {exc!r}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"ok": False, "error": "Internal server error"},
    )


def main() -> None:
    uvicorn.run(app, host=config.WEBAPP_HOST, port=config.WEBAPP_PORT)
