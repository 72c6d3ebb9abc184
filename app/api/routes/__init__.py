"""API routes mounted under API_PREFIX."""

from fastapi import APIRouter

from app.api.routes import admin, archive, auth, chat, health, live_stream

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
router.include_router(live_stream.router, prefix="/live-stream", tags=["live-stream"])
router.include_router(archive.router, prefix="/archive", tags=["archive"])
router.include_router(chat.router, prefix="/chat", tags=["chat"])
