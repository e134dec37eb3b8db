"""API endpoints for Chatgate"""

from fastapi import APIRouter
from .ai import router as ai_router
from .chat import router as chat_router

# Create main router
router = APIRouter()

router.include_router(chat_router, prefix="/chat", tags=["chat"])
router.include_router(ai_router, prefix="/ai", tags=["ai"])

__all__ = ["router"]
