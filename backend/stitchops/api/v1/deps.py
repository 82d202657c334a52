"""
API Dependencies

Actor identity and common query parameters shared by the routers.
"""
from typing import Optional

from fastapi import Header, Query

from stitchops.exceptions import MissingActorError


def get_current_actor(x_user_id: Optional[str] = Header(None)) -> str:
    """
    Identity of the user performing a mutating request.

    Read from the X-User-Id header. The value is not authenticated here.

    Raises:
        MissingActorError: Header missing or blank
    """
    if x_user_id is None or not x_user_id.strip():
        raise MissingActorError()
    return x_user_id.strip()


class PageParams:
    """Page-number pagination query parameters"""

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number (1-based)"),
        limit: int = Query(20, ge=1, le=200, description="Records per page"),
    ):
        self.page = page
        self.limit = limit
