"""Shared route dependencies: caller identity and the validation component."""

import logging
import uuid
from typing import Optional

from fastapi import Header, HTTPException, Request, status

from ..services.users_data import UserDataManager
from ..services.validation import ActivityValidator

logger = logging.getLogger(__name__)


# Used by: every /activities, /babies and /stats route
async def get_current_user_id(x_user_id: Optional[str] = Header(None, alias="X-User-ID")) -> uuid.UUID:
    """The session layer in front of the API puts the caller's user id in X-User-ID."""
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing authentication header")

    try:
        user_id = uuid.UUID(x_user_id)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid user id")

    user = await UserDataManager().get_user(user_id)
    if user is None:
        logger.warning(f"Rejected request for unknown user {user_id}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")

    return user.id


def get_validator(request: Request) -> ActivityValidator:
    return request.app.state.validator
