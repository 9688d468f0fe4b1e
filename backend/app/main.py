"""
FastAPI application entry point for the Meal Planner API.

This module initializes the FastAPI app with middleware, CORS, logging,
and registers all API routers.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from app.config import settings
from app.core.errors import register_exception_handlers
from app.core.limiter import limiter
from app.database import init_db
from app.logging_config import setup_logging
from app.routers import (
    auth,
    dashboard,
    inventory,
    meal_plans,
    nutritionist,
    products,
    profiles,
    recipes,
    shopping_list_imports,
    shopping_lists,
    staples,
)

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    # Startup
    logger.info("Initializing database...")
    init_db()
    logger.info("Database initialized successfully")

    yield

    # Shutdown
    logger.info("Shutting down application...")


# Create FastAPI app
app = FastAPI(
    title="Meal Planner API",
    description="API for household meal planning, shopping lists and inventory",
    version="1.0.0",
    lifespan=lifespan,
)
app.state.limiter = limiter
register_exception_handlers(app)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add GZip compression
app.add_middleware(GZipMiddleware, minimum_size=1000)

# Register routers
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(profiles.router, prefix="/api/profiles", tags=["profiles"])
app.include_router(recipes.router, prefix="/api/recipes", tags=["recipes"])
app.include_router(meal_plans.router, prefix="/api/meal-plans", tags=["meal-plans"])
app.include_router(shopping_lists.router, prefix="/api/shopping-lists", tags=["shopping-lists"])
app.include_router(
    shopping_list_imports.router, prefix="/api/shopping-lists", tags=["shopping-list-imports"]
)
app.include_router(staples.router, prefix="/api/staples", tags=["staples"])
app.include_router(inventory.router, prefix="/api/inventory", tags=["inventory"])
app.include_router(products.router, prefix="/api/products", tags=["products"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["dashboard"])
app.include_router(nutritionist.router, prefix="/api/nutritionist", tags=["nutritionist"])


@app.get("/")
async def root():
    """Root endpoint for health check."""
    return {"message": "Meal Planner API", "status": "running"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
