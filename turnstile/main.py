"""Turnstile HTTP entrypoint: mounts the identity API and nothing else."""

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from turnstile.api.v1 import router as v1_router
from turnstile.core.config import settings

app = FastAPI(
    title="Turnstile",
    description="User accounts, authorities and account-state gated login.",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Discovery payload: login and health endpoints."""
    return {
        "service": "turnstile",
        "version": app.version,
        "login": f"{settings.API_V1_PREFIX}/auth",
        "health": f"{settings.API_V1_PREFIX}/health/",
    }
