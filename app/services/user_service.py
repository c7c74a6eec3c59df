from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, StateConflictError
from app.core.money import required_text
from app.database import session_scope
from app.models.user import User


def load_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == int(user_id)).first()
    if user is None:
        raise NotFoundError("User", user_id)
    return user


def create_user(*, full_name: str, email: str, db: Optional[Session] = None) -> User:
    clean_email = required_text(email, "email").lower()
    with session_scope(db) as s:
        if s.query(User.id).filter(User.email == clean_email).first() is not None:
            raise StateConflictError(f"Email already registered: {clean_email}")

        user = User(full_name=required_text(full_name, "full_name"), email=clean_email, is_active=True)
        s.add(user)
        try:
            s.flush()
        except IntegrityError as exc:
            raise StateConflictError(f"Email already registered: {clean_email}") from exc
        return user


def get_user(user_id: int, *, db: Optional[Session] = None) -> User:
    with session_scope(db) as s:
        return load_user(s, user_id)
