from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
from contextlib import asynccontextmanager
import logging

from .api.routes import router as api_router
from .core.config import settings
from .core.database import init_db
from .services.llm_service import llm_service
from .services.news_aggregator import news_aggregator

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic for the FastAPI app."""
    logger.info("Starting up the application...")
    await init_db()
    try:
        yield
    finally:
        # Close the shared HTTP sessions to avoid unclosed aiohttp client
        # warnings.
        for service in (news_aggregator, llm_service):
            try:
                await service.close()
            except Exception as e:
                logger.warning(f"Error closing {type(service).__name__} session: {e}")
        logger.info("Shutting down the application...")


# Initialize FastAPI app
app = FastAPI(
    title="NewsScope - Multi-source News Aggregation",
    description="Aggregates recent articles about a topic from several trusted news outlets",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health check endpoint
@app.get("/health")
async def health_check():
    return {"status": "ok", "message": "Service is healthy"}


# Mount all API routes
app.include_router(api_router, prefix="/api")


# Dev entry point
if __name__ == "__main__":
    uvicorn.run(
        "newsscope.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.is_development
    )
