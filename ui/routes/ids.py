"""Identifier generate/decode routes."""

from fastapi import APIRouter, Query

router = APIRouter(prefix="/api/v1/ids", tags=["ids"])

MAX_BATCH = 1000

# Set by app.py
_service = None


def init(service):
    """Initialize with the IdService reference."""
    global _service
    _service = service


@router.post("")
async def generate(count: int = Query(1, ge=1, le=MAX_BATCH)):
    """Generate ``count`` identifiers."""
    return {"ids": _service.generate(count)}


@router.get("")
async def decode_query(nfuid: str = Query(..., min_length=1)):
    """Decode an identifier passed as ``?nfuid=``.

    Use this form when the alphabet holds characters such as ``/``, ``?``,
    ``#`` or ``%`` that cannot travel in a raw path segment.
    """
    return _service.decode(nfuid).to_dict()


@router.get("/{nfuid}")
async def decode(nfuid: str):
    """Decode one identifier. Decode errors become 400 responses in app.py.

    Clients must percent-encode identifiers containing reserved URL characters.
    """
    return _service.decode(nfuid).to_dict()
