"""Item search router."""

from fastapi import APIRouter

router = APIRouter()


@router.get("/search")
async def search_items():
    """Search items by name."""
    return {"message": "Not implemented yet"}
