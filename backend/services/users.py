# backend/services/users.py
import logging
from typing import Any, Dict, List

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from models.users import User, ROLE_ADMIN, ROLE_USER
from utils.errors import DuplicateEmail, InvalidCredentials, NotFound, PersistenceFailure
from utils.hashing import dummy_verify, get_password_hash, verify_password

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "role", "is_active")


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _commit(db: Session, what: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to %s", what)
        raise PersistenceFailure(f"Failed to {what}") from e


def find_by_email(db: Session, email: str):
    return db.query(User).filter(func.lower(User.email) == normalize_email(email)).first()


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def login(db: Session, email: str, password: str) -> User:
    """Return the account matching both credentials.

    Unknown email, wrong password and deactivated accounts all fail the
    same way so the response does not reveal which one it was.
    """
    user = find_by_email(db, email)
    if user is None:
        dummy_verify()
        raise InvalidCredentials()
    if not verify_password(password, user.password_hash):
        raise InvalidCredentials()
    if not user.is_active:
        logger.info("Login refused for inactive account %s", user.id)
        raise InvalidCredentials()
    return user


def list_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.id.asc()).all()


def create_user(db: Session, email: str, password: str, name: str, role: str = ROLE_USER) -> User:
    email = normalize_email(email)
    if find_by_email(db, email) is not None:
        raise DuplicateEmail()

    user = User(email=email, password_hash=get_password_hash(password), name=name, role=role, is_active=True)
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        # Lost a race against a concurrent create with the same email
        db.rollback()
        raise DuplicateEmail() from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to create user")
        raise PersistenceFailure("Failed to create user") from e
    db.refresh(user)
    logger.info("Created user %s with role %s", user.id, user.role)
    return user


def update_user(db: Session, user_id: int, patch: Dict[str, Any]) -> User:
    user = get_user(db, user_id)
    for key in UPDATABLE_FIELDS:
        if patch.get(key) is not None:
            setattr(user, key, patch[key])
    _commit(db, "update user")
    db.refresh(user)
    return user


def reset_password(db: Session, user_id: int, password: str) -> None:
    user = get_user(db, user_id)
    user.password_hash = get_password_hash(password)
    _commit(db, "reset password")


def delete_user(db: Session, user_id: int) -> None:
    # Movements keep the id of a deleted actor
    user = get_user(db, user_id)
    db.delete(user)
    _commit(db, "delete user")
    logger.info("Deleted user %s", user_id)


def ensure_admin(db: Session, email: str, password: str, name: str):
    """Create the bootstrap administrator when there are no accounts yet."""
    if db.query(User.id).first() is not None:
        return None
    user = create_user(db, email=email, password=password, name=name, role=ROLE_ADMIN)
    logger.warning("No users found, created bootstrap admin %s", user.email)
    return user
