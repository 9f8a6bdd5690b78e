import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
from logging_config import setup_logging
from storage import IStorage, create_storage
from routes.auth import router as auth_router
from routes.profile import router as profile_router
from routes.posts import router as posts_router
from routes.comments import router as comments_router
from routes.communities import router as communities_router
from routes.stations import router as stations_router
from routes.bookmarks import router as bookmarks_router
from routes.questions import router as questions_router
from routes.articles import router as articles_router
from routes.reports import router as reports_router
from routes.admin import router as admin_router
from routes.notifications import router as notifications_router
from routes.messages import router as messages_router
from routes.search import router as search_router

logger = logging.getLogger(__name__)

def create_app(storage: Optional[IStorage] = None) -> FastAPI:
    app = FastAPI(title="EVConnect API")

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],  # Allows all methods
        allow_headers=["*"],  # Allows all headers
    )

    # Storage is chosen once; routes reach it through get_storage
    app.state.storage = storage if storage is not None else create_storage()

    # Include routers
    app.include_router(auth_router)
    app.include_router(profile_router)
    app.include_router(posts_router)
    app.include_router(comments_router)
    app.include_router(communities_router)
    app.include_router(stations_router)
    app.include_router(bookmarks_router)
    app.include_router(questions_router)
    app.include_router(articles_router)
    app.include_router(reports_router)
    app.include_router(admin_router)
    app.include_router(notifications_router)
    app.include_router(messages_router)
    app.include_router(search_router)

    @app.get("/api/health")
    def health():
        return {"status": "ok", "storage": type(app.state.storage).__name__}

    return app

setup_logging(config.LOG_LEVEL)
app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=5000, reload=True)
