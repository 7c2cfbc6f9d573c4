"""Credential store: user records and password checks."""

from functools import lru_cache
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from listkeeper.auth.identity import UserId
from listkeeper.auth.password import hash_password, verify_password
from listkeeper.db.models import User
from listkeeper.errors import ValidationError
from listkeeper.validation import check_registration, raise_for_errors

logger = structlog.get_logger()

_EMAIL_TAKEN = "The email has already been taken."


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    # Checked when the email is unknown so both failure paths cost one bcrypt round.
    return hash_password("listkeeper-dummy-password")


class CredentialStore:
    """Creates users and verifies email/password pairs."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def register(self, name: str, email: str, password: str) -> User:
        """Create a user. Raises ValidationError on bad input or a taken email."""
        raise_for_errors(check_registration(name, email, password))

        if await self._find_by_email(email):
            raise ValidationError({"email": [_EMAIL_TAKEN]})

        user = User(name=name, email=email, password_hash=hash_password(password))
        self.db.add(user)
        try:
            await self.db.flush()
        except IntegrityError:
            # Lost a race with a concurrent sign-up for the same address.
            await self.db.rollback()
            logger.info("auth.register_conflict")
            raise ValidationError({"email": [_EMAIL_TAKEN]})
        logger.info("auth.user_registered", user_id=user.id)
        return user

    async def verify(self, email: str, password: str) -> Optional[UserId]:
        """Return the user's id when the password matches, else None.

        Unknown email and wrong password look the same to the caller.
        """
        user = await self._find_by_email(email)
        if user is None:
            verify_password(password, _dummy_hash())
            return None
        if not verify_password(password, user.password_hash):
            return None
        return UserId(user.id)

    async def get(self, user_id: UserId) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def _find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalars().first()
