# barbershop/deps.py

from fastapi import HTTPException

from .errors import BookingError


def require_role(user: dict, role: str):
    if user["role"] != role:
        raise HTTPException(status_code=403, detail="Forbidden")

def raise_for_error(error: BookingError):
    raise HTTPException(status_code=error.status_code, detail=error.to_detail())
