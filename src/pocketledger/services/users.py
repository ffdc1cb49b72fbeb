"""Owner bootstrap helpers."""

from __future__ import annotations

from sqlmodel import select

from ..infra.database import SessionFactory
from ..models.user import User

LOCAL_USERNAME = "local"


def get_or_create_user(session_factory: SessionFactory, username: str = LOCAL_USERNAME) -> User:
    """Return the owner named ``username``, creating it on first use."""

    username = username.strip()
    if not username:
        raise ValueError("Username is required")
    with session_factory() as session:
        user = session.exec(select(User).where(User.username == username)).first()
        if user is None:
            user = User(username=username)
            session.add(user)
            session.flush()
            session.refresh(user)
        return user


def list_users(session_factory: SessionFactory) -> list[User]:
    """Return all users ordered by creation time."""
    with session_factory() as session:
        return list(session.exec(select(User).order_by(User.created_at)).all())
