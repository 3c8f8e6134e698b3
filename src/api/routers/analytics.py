"""Analytics route group, mounted at ``/api/analytics``."""

from fastapi import APIRouter

from src.api.constants import ANALYTICS_PREFIX

router = APIRouter(tags=["analytics"])


@router.get("")
async def analytics_index() -> dict[str, str]:
    """Describe the analytics route group.

    Returns:
        dict[str, str]: Group name and mount point.
    """
    return {"group": "analytics", "prefix": ANALYTICS_PREFIX}
