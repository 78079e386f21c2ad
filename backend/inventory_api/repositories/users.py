# Overview: Credential store access for User rows.

from __future__ import annotations

from ..extensions import db
from ..models import User


def get(user_id: int) -> User | None:
    return db.session.get(User, user_id)


def get_by_username(username: str) -> User | None:
    return db.session.query(User).filter(User.username == username).first()


def get_by_email(email: str) -> User | None:
    return db.session.query(User).filter(User.email == email).first()


def username_or_email_taken(username: str, email: str) -> bool:
    existing = db.session.query(User.id).filter(
        db.or_(User.username == username, User.email == email)
    ).first()
    return existing is not None


def list_users(limit: int, offset: int) -> list[User]:
    return db.session.query(User).order_by(User.id.asc()).offset(offset).limit(limit).all()


def add(user: User) -> User:
    db.session.add(user)
    db.session.flush()
    return user


def delete(user: User) -> None:
    db.session.delete(user)
    db.session.flush()
