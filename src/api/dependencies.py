"""FastAPI dependencies shared by route groups.

Route handlers declare what they borrow from the request pipeline:

    @router.post("")
    async def create(body: ParsedBody, db: Datastore) -> dict[str, str]:
        ...

The datastore is owned by the ``DatastoreManager`` on ``app.state``; handlers
only borrow the database handle for the duration of the request.
"""

from typing import Annotated

from fastapi import Depends, Request
from pymongo.asynchronous.database import AsyncDatabase

from src.api.middleware.body_parser import PARSED_BODY_STATE_KEY
from src.core.types import ParsedBodyValue
from src.infrastructure.datastore.manager import DatastoreManager


def get_parsed_body(request: Request) -> ParsedBodyValue:
    """Return the body decoded by the body parser stage, or None."""
    return getattr(request.state, PARSED_BODY_STATE_KEY, None)


def get_datastore_manager(request: Request) -> DatastoreManager:
    """Return the application's datastore manager."""
    manager: DatastoreManager = request.app.state.datastore
    return manager


def get_datastore(
    manager: Annotated[DatastoreManager, Depends(get_datastore_manager)],
) -> AsyncDatabase:
    """Borrow the connected database.

    Raises:
        DatastoreUnavailableError: If no connection has been established.
    """
    return manager.get_database()


ParsedBody = Annotated[ParsedBodyValue, Depends(get_parsed_body)]
Datastore = Annotated[AsyncDatabase, Depends(get_datastore)]
DatastoreManagerDep = Annotated[DatastoreManager, Depends(get_datastore_manager)]
