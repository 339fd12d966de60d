"""FastAPI routers for the summarizer API.

Routers are grouped by domain (summaries, sharing) and mounted under /api.
"""

from fastapi import APIRouter

from .share import router as share_router
from .summaries import router as summaries_router

api_router = APIRouter()
api_router.include_router(summaries_router)
api_router.include_router(share_router)


@api_router.get("/health")
def health():  # pragma: no cover - trivial
    return {"status": "ok"}
