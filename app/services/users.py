import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import DuplicateEmailError, translate_store_errors
from app.database.db import transaction
from app.models.users import User

logger = logging.getLogger(__name__)


def create_user(db: Session, *, name: str, email: str) -> User:
    user = User(name=name, email=email)
    try:
        with translate_store_errors("create_user"), transaction(db):
            db.add(user)
            db.flush()
            db.refresh(user)
    except IntegrityError as e:
        raise DuplicateEmailError(f"A user with email {email} already exists") from e
    logger.info("Created user %s", user.id)
    return user


def get_user(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.scalar(select(User).where(User.email == email))


def list_users(db: Session) -> list[User]:
    return list(db.scalars(select(User).order_by(User.created_at.desc(), User.id.desc())))


def delete_user(db: Session, user_id: int) -> bool:
    with transaction(db):
        user = db.get(User, user_id)
        if not user:
            return False
        db.delete(user)
    logger.info("Deleted user %s", user_id)
    return True
