from typing import List

from fastapi import APIRouter, Request

from schemas.users import UserOut

users_router = APIRouter(prefix="/users", tags=["users"])


@users_router.get("/", response_model=List[UserOut], response_model_by_alias=True)
async def list_users(request: Request):
    """Online users; the same snapshot clients receive as update_user_list."""
    return request.app.state.chat.users.snapshot()
