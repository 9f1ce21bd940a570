from fastapi import APIRouter
from fastapi.responses import Response

from core.database import get_stats
from core.errors import StoreUnavailable

router = APIRouter()


@router.get("/health")
def health():
    """
    Basic health check for the app, with queue depth per status.
    """
    try:
        stats = get_stats()
        return {
            "status": "ok",
            "stats": stats,
        }
    except StoreUnavailable as e:
        return {
            "status": "error",
            "detail": str(e),
        }


@router.get("/favicon.ico")
def favicon():
    # Return empty 204 to avoid log noise for missing favicon
    return Response(status_code=204)
