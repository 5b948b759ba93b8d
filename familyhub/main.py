import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from familyhub.config import settings
from familyhub.core.errors import register_exception_handlers
from familyhub.database import Base, engine
from familyhub.logging_config import setup_logging

# Import models so SQLAlchemy registers tables
from familyhub.models import (  # noqa: F401
    user,
    family,
    family_member,
    event,
    event_attendee,
    event_invitation,
    post,
    comment,
    like,
    media,
)

# Routers
from familyhub.routers import (
    user_router,
    family_router,
    event_router,
    post_router,
    media_router,
)

setup_logging()
log = logging.getLogger("familyhub")

# -----------------------
# CREATE APP
# -----------------------
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Backend API for sharing family posts, events and media.",
    version="1.0.0",
)

# -----------------------
# CORS
# -----------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -----------------------
# ERRORS -> JSON ENVELOPE
# -----------------------
register_exception_handlers(app)

# -----------------------
# DATABASE TABLES
# -----------------------
Base.metadata.create_all(bind=engine)

# -----------------------
# STATIC MEDIA FILES
# -----------------------
if settings.STORAGE_BACKEND == "local":
    os.makedirs(settings.LOCAL_MEDIA_PATH, exist_ok=True)
    app.mount("/media", StaticFiles(directory=settings.LOCAL_MEDIA_PATH), name="media")

# -----------------------
# ROUTES
# -----------------------
app.include_router(user_router.router)
app.include_router(family_router.router)
app.include_router(event_router.router)
app.include_router(post_router.router)
app.include_router(media_router.router)

log.info("%s started (env=%s, storage=%s)", settings.PROJECT_NAME, settings.ENV, settings.STORAGE_BACKEND)


# -----------------------
# HEALTH CHECK
# -----------------------
@app.get("/api")
def welcome():
    return {"success": True, "message": f"Welcome to the {settings.PROJECT_NAME}"}


@app.get("/")
def root():
    return {"success": True, "message": "Family Hub API is running!", "env": settings.ENV}
