"""Customer route group, mounted at ``/api/customers``."""

from fastapi import APIRouter

from src.api.constants import CUSTOMERS_PREFIX

router = APIRouter(tags=["customers"])


@router.get("")
async def customers_index() -> dict[str, str]:
    """Describe the customer route group.

    Returns:
        dict[str, str]: Group name and mount point.
    """
    return {"group": "customers", "prefix": CUSTOMERS_PREFIX}
