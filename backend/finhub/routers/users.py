from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from finhub.db import Database, get_database
from finhub.errors import InvalidInput, NotFound, store_errors
from finhub.models import User
from finhub.schemas import UserCreate, UserOut, UserUpdate, serialize


logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=dict)
def list_users(db: Database = Depends(get_database)) -> dict:
    """List every user with their posts."""
    with store_errors("Failed to load users"), db.session() as session:
        users = session.execute(select(User).options(selectinload(User.posts)).order_by(User.id)).scalars()
        return {"users": [serialize(UserOut, user) for user in users]}


@router.get("/{user_id}", response_model=dict)
def get_user(user_id: int, db: Database = Depends(get_database)) -> dict:
    with store_errors("Failed to load user"), db.session() as session:
        user = session.get(User, user_id, options=[selectinload(User.posts)])
        if user is None:
            raise NotFound("User not found")
        return {"user": serialize(UserOut, user)}


@router.post("", response_model=dict)
def create_user(payload: UserCreate, db: Database = Depends(get_database)) -> dict:
    with db.session() as session:
        user = User(email=payload.email.strip().lower(), name=payload.name)
        session.add(user)
        try:
            session.flush()
        except IntegrityError as exc:
            raise InvalidInput(f"User with email {payload.email} already exists") from exc
        return {"message": "User created", "user": serialize(UserOut, user)}


@router.put("/{user_id}", response_model=dict)
def update_user(user_id: int, payload: UserUpdate, db: Database = Depends(get_database)) -> dict:
    """
    Partial update: only non-empty fields are applied.
    """
    with db.session() as session:
        user = session.get(User, user_id)
        if user is None:
            raise NotFound("User not found")

        if payload.email:
            user.email = payload.email.strip().lower()
        if payload.name:
            user.name = payload.name

        try:
            session.flush()
        except IntegrityError as exc:
            raise InvalidInput(f"User with email {payload.email} already exists") from exc
        return {"message": "User updated", "user": serialize(UserOut, user)}


@router.delete("/{user_id}", response_model=dict)
def delete_user(user_id: int, db: Database = Depends(get_database)) -> dict:
    with db.session() as session:
        user = session.get(User, user_id)
        if user is None:
            raise NotFound("User not found")
        session.delete(user)
        session.flush()
    logger.info("Deleted user %s", user_id)
    return {"message": "User deleted"}
