import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from fliq.core.config import settings
from fliq.core.logging import configure_logging
from fliq.api.v1.api import api_router

configure_logging()

app = FastAPI(title=settings.APP_NAME)

# CORS: use CORS_ORIGINS from env in production; default to localhost for dev
_default_origins = [
    "http://127.0.0.1:5173", "http://localhost:5173",
    "http://127.0.0.1:8080", "http://localhost:8080",
]
_origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()] if settings.CORS_ORIGINS else _default_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/health")
def health():
    return {"status": "ok"}


# Uploaded avatars / verification documents
if settings.PUBLIC_MEDIA_URL.startswith("/"):
    os.makedirs(settings.UPLOAD_LOCAL_DIR, exist_ok=True)
    app.mount(settings.PUBLIC_MEDIA_URL.rstrip("/"), StaticFiles(directory=settings.UPLOAD_LOCAL_DIR), name="media")
