"""FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shoplist import __version__
from shoplist.config import get_settings
from shoplist.logging_config import configure_logging, get_logger
from shoplist.recipes import InMemoryRecipeSource
from shoplist.routers import shopping_list_router

settings = get_settings()

# Configure logging on module load
configure_logging(settings)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Starting Shoplist API")

    if not hasattr(app.state, "recipe_source"):
        if settings.recipes_file:
            app.state.recipe_source = InMemoryRecipeSource.from_json_file(settings.recipes_file)
        else:
            logger.warning("No recipes file configured, starting with an empty recipe source")
            app.state.recipe_source = InMemoryRecipeSource()

    yield

    logger.info("Shutting down Shoplist API")


app = FastAPI(
    title="Shoplist API",
    description="Merge recipe ingredients into a scaled shopping list",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(shopping_list_router)


@app.get("/health")
async def health_check() -> dict:
    """Basic health check endpoint."""
    return {"status": "ok", "service": "shoplist-api"}


@app.get("/")
async def root() -> dict:
    """Root endpoint with API information."""
    return {
        "name": "Shoplist API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }
