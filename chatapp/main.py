"""
Chat Platform API - FastAPI application entry point
AI chat app (/api) and admin back-office (/api/admin)
"""

import logging

# Configure logging to show INFO level
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s"
)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from chatapp.config import settings
from chatapp.database import create_tables
from chatapp.middleware.rate_limiter import setup_rate_limiting
from chatapp.utils.error_handlers import setup_error_handlers

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="AI chat platform with resumable streaming, RAG upload and an admin back-office",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "authentication", "description": "Guest, registered and session endpoints"},
        {"name": "chat", "description": "Streaming chat and stream resumption"},
        {"name": "history", "description": "Chat history"},
        {"name": "vote", "description": "Message votes"},
        {"name": "document", "description": "Artifact documents and suggestions"},
        {"name": "templates", "description": "Prompt templates"},
        {"name": "settings", "description": "User settings and stats"},
        {"name": "rag", "description": "Document upload for retrieval"},
        {"name": "admin", "description": "Admin back-office"}
    ]
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_rate_limiting(app)

setup_error_handlers(app)


@app.on_event("startup")
async def startup_event():
    """Initialize database tables on startup"""
    create_tables()
    logger.info(f"{settings.APP_NAME} v{settings.APP_VERSION} started")
    logger.info(f"API Docs: http://{settings.API_HOST}:{settings.API_PORT}/docs")


@app.get("/")
async def root():
    """Health check endpoint"""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "healthy"
    }


@app.get("/health")
async def health_check():
    """Detailed health check"""
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "resumable_streams": bool(settings.RESUMABLE_STREAMS_ENABLED and settings.REDIS_URL)
    }


# Import and register routers
from chatapp.api import (  # noqa: E402
    admin,
    auth,
    chat,
    document,
    history,
    rag,
    session,
    settings as settings_api,
    suggestions,
    templates,
    vote,
)

app.include_router(auth.router, prefix="/api")
app.include_router(session.router, prefix="/api")
app.include_router(chat.router, prefix="/api")
app.include_router(history.router, prefix="/api")
app.include_router(vote.router, prefix="/api")
app.include_router(document.router, prefix="/api")
app.include_router(suggestions.router, prefix="/api")
app.include_router(templates.router, prefix="/api")
app.include_router(settings_api.router, prefix="/api")
app.include_router(rag.router, prefix="/api")
app.include_router(admin.router, prefix="/api")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "chatapp.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.API_RELOAD
    )
