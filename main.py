import logging
import sys
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import Settings, get_settings
from database import create_datastore
from routers import classify
from services.classification_service import ClassificationServices
from services.inference_service import BreedClassifier
from services.storage_service import StorageClient

logger = logging.getLogger(__name__)

def configure_logging(settings: Settings):
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

def build_http_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.HTTP_TIMEOUT_SECONDS),
        transport=httpx.AsyncHTTPTransport(retries=settings.HTTP_RETRIES),
        follow_redirects=True
    )

def build_services(settings: Settings, http_client: httpx.AsyncClient) -> ClassificationServices:
    storage = None
    if settings.SUPABASE_URL and settings.SUPABASE_SERVICE_ROLE_KEY:
        storage = StorageClient(http_client, settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    else:
        logger.warning("Storage service not configured, images will be fetched over HTTP")

    classifier = BreedClassifier(
        http_client,
        url=settings.CLASSIFIER_URL,
        api_key=settings.CLASSIFIER_API_KEY,
        use_cache=settings.CLASSIFIER_USE_CACHE
    )

    return ClassificationServices(
        http_client=http_client,
        storage=storage,
        classifier=classifier,
        datastore=create_datastore(settings, http_client),
        model_version=settings.MODEL_VERSION
    )

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.state.settings
    configure_logging(settings)

    async with build_http_client(settings) as http_client:
        app.state.services = build_services(settings, http_client)
        logger.info(f"{settings.APP_NAME} started ({settings.APP_ENV})")
        yield

def create_app(settings: Settings = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        description="API for animal breed classification from photographs",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.settings = settings

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(classify.router, prefix=settings.API_PREFIX)

    @app.get("/health", tags=["Health"])
    def health_check():
        return {
            "status": "ok",
            "environment": settings.APP_ENV
        }

    return app

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8001,
        reload=True,
        reload_dirs=["./"]
    )
