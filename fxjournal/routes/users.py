from fastapi import APIRouter, Depends, HTTPException

from fxjournal.database import get_storage
from fxjournal.schemas.user_schema import UserUpdate
from fxjournal.storage.base import BaseStorage, public_user

router = APIRouter()


def require_user_id(user_id):
    """Query param userId is mandatory on list endpoints"""
    if user_id is None:
        raise HTTPException(status_code=400, detail="userId is required")
    return user_id


def get_user_or_404(storage: BaseStorage, user_id: int) -> dict:
    user = storage.get_user(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("/{user_id}")
def get_user(user_id: int, storage: BaseStorage = Depends(get_storage)):
    return {"success": True, "user": public_user(get_user_or_404(storage, user_id))}


@router.put("/{user_id}")
def update_user(user_id: int, user_update: UserUpdate, storage: BaseStorage = Depends(get_storage)):
    """Update profile, settings or initial balance"""
    get_user_or_404(storage, user_id)
    updated = storage.update_user(user_id, user_update.model_dump(exclude_unset=True))
    return {"success": True, "user": public_user(updated)}
