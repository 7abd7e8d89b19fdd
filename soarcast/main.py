"""FastAPI application setup for the soarcast forecast service."""

from fastapi import FastAPI

from .api import router as api_router

app = FastAPI(title="soarcast")


@app.get("/health")
def health():
    """Liveness probe."""
    return {"status": "ok"}


# API routes
app.include_router(api_router, prefix="/v1")
