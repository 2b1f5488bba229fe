from fastapi import APIRouter, Depends
from app.modules.auth.schemas import CurrentUserResponse
from app.core.dependencies import get_current_user_id
from typing import Dict

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me", response_model=CurrentUserResponse)
async def get_me(user_data: Dict = Depends(get_current_user_id)):
    """Get the authenticated recipient"""
    return user_data
