"""API routes for service statistics."""

from fastapi import APIRouter, Depends

from utils.timestamp import format_timestamp
from ui.auth import verify_basic_auth

router = APIRouter(prefix="/api/v1", tags=["api"])

# These will be set by app.py
_service = None
_file_logger = None


def init(service, file_logger):
    """Initialize with service and audit logger references."""
    global _service, _file_logger
    _service = service
    _file_logger = file_logger


@router.get("/stats")
async def stats(username=Depends(verify_basic_auth)):
    """Return codec counters and audit log statistics (requires basic auth)."""
    return {
        "timestamp": format_timestamp(),
        "service": _service.get_stats(),
        "audit": _file_logger.get_stats(),
    }
