from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from smart_offers.core.config import settings
from smart_offers.core.logging_config import setup_logging
from smart_offers.db.session import init_db


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    init_db()
    yield


app = FastAPI(
    title="Smart Offers & Bundles API",
    version="1.0.0",
    lifespan=lifespan
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Import routers after app creation to avoid circular imports
from smart_offers.api import (
    offers,
    storefront,
    analytics,
    webhooks,
)

# Routers - all already have /api prefix
app.include_router(offers.router)
app.include_router(storefront.router)
app.include_router(analytics.router)
app.include_router(webhooks.router)


@app.get("/")
def root():
    return {"status": "ok", "service": "smart-offers-api"}


@app.get("/api/health")
def health_check():
    return {
        "status": "healthy",
        "env": settings.ENV
    }
