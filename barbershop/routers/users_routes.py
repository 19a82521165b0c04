# barbershop/routers/users_routes.py

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barbershop.db import get_session
from barbershop.models import User, UserRole
from barbershop.schemas import UserCreate, UserPublic, UserUpdate
from barbershop.auth import get_current_user, hash_password

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["users"],
)

def _public(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
    }


@router.get("/me", response_model=UserPublic)
def me(current_user: dict = Depends(get_current_user)):
    return {
        "id": current_user["id"],
        "name": current_user["name"],
        "email": current_user["email"],
        "role": current_user["role"],
    }


@router.put("/me", response_model=UserPublic)
def update_me(
    changes: UserUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    if changes.name is None and changes.password is None:
        raise HTTPException(status_code=422, detail="No fields to update")

    db_user = session.get(User, current_user["id"])
    if changes.name is not None:
        db_user.name = changes.name
    if changes.password is not None:
        db_user.password_hash = hash_password(changes.password)

    session.add(db_user)
    session.commit()
    session.refresh(db_user)
    return _public(db_user)


@router.post("/users", status_code=201, response_model=UserPublic)
def create_user(
    user: UserCreate,
    session: Session = Depends(get_session),
):
    email = user.email.strip().lower()

    # 1) Check if email already exists
    existing = session.exec(
        select(User).where(User.email == email)
    ).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Email already registered")

    # 2) Create user in DB; self-registration is always a client account
    db_user = User(
        name=user.name,
        email=email,
        password_hash=hash_password(user.password),
        role=UserRole.client.value,
    )

    session.add(db_user)
    session.commit()
    session.refresh(db_user)  # fills db_user.id
    logger.info("Registered client %s", db_user.id)

    # 3) Return public user
    return _public(db_user)
