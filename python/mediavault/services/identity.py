"""User identity resolution.

Maps an authenticated Clerk principal to the local users row, creating it on
first sight. Race-safe: two first requests for the same principal converge on
one row via the unique constraint on clerk_id.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mediavault.db.models import User
from mediavault.errors import MissingProfileDataError

logger = logging.getLogger(__name__)


def get_user_by_external_id(db: Session, external_id: str) -> User | None:
    return db.execute(select(User).where(User.clerk_id == external_id)).scalar_one_or_none()


def resolve_user(
    db: Session,
    external_id: str,
    email: str | None = None,
    name: str | None = None,
) -> User:
    """Return the user for an external principal, creating it if needed.

    An existing row is returned unchanged; profile fields are not refreshed.

    Args:
        db: Database session.
        external_id: The principal's id (JWT sub claim).
        email: Profile email, required only when creating.
        name: Profile display name, required only when creating.

    Returns:
        The persisted User.

    Raises:
        MissingProfileDataError: If the user must be created but email or name is empty.
    """
    user = get_user_by_external_id(db, external_id)
    if user is not None:
        return user

    if not email or not name:
        logger.warning("Cannot create user %s: missing email or name", external_id)
        raise MissingProfileDataError()

    user = User(clerk_id=external_id, email=email, name=name)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost race: another request created the row
        db.rollback()
        user = get_user_by_external_id(db, external_id)
        if user is None:
            logger.error("Failed to find user %s after race recovery", external_id)
            raise RuntimeError(f"Failed to resolve user {external_id}") from None
        logger.info("Found existing user %s for %s after race", user.id, external_id)
        return user

    logger.info("Created user %s for %s", user.id, external_id)
    return user
