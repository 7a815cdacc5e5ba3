"""
FastAPI application entrypoint.

    uvicorn api.main:app
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from api.routes import router, settings, shutdown_session

logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.DEBUG))


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # camera, overlay clock and detector die with the server
    shutdown_session()


app = FastAPI(title="Emoji Face Fusion API", version="1.0.0", lifespan=lifespan)
app.include_router(router)

@app.get("/health")
def health() -> dict:
    """
    Health check endpoint.

    Returns:
        dict: Simple status payload.
    """
    return {"status": "ok"}
