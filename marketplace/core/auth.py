"""Bearer token authentication resolving the calling user."""
from typing import Optional
import hashlib
import logging

from fastapi import HTTPException, Request, Depends
from fastapi.security import HTTPBearer
from starlette.status import HTTP_401_UNAUTHORIZED
from sqlalchemy.orm import Session

from marketplace.db.base import get_db_session
from marketplace.db.models.user import User

logger = logging.getLogger(__name__)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


class UserAuth(HTTPBearer):
    """Resolve the user whose api_key_hash matches the sha256 of the Bearer token."""

    def __init__(self, required: bool = True):
        # Missing credentials are handled below so they answer 401, not 403
        super().__init__(auto_error=False)
        self.required = required

    async def __call__(
        self,
        request: Request,
        db: Session = Depends(get_db_session),
    ) -> Optional[User]:
        credentials = await super().__call__(request)

        if credentials is None:
            if not self.required:
                return None
            raise HTTPException(
                status_code=HTTP_401_UNAUTHORIZED,
                detail="Not authenticated",
                headers={"WWW-Authenticate": "Bearer"},
            )

        user = (
            db.query(User)
            .filter(User.api_key_hash == hash_token(credentials.credentials))
            .first()
        )

        if not user:
            client = request.client.host if request.client else "unknown"
            logger.warning(f"Invalid API key attempted from {client}")
            raise HTTPException(
                status_code=HTTP_401_UNAUTHORIZED,
                detail="Invalid API key",
                headers={"WWW-Authenticate": "Bearer"},
            )

        request.state.user_id = user.id
        return user


get_current_user = UserAuth()
