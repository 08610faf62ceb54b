from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.dependencies import get_current_user_id, get_optional_user_id, get_services
from app.services import Services

router = APIRouter(prefix="/profiles", tags=["profiles"])

@router.get("/{username}")
async def get_profile(
    username: str,
    viewer_id: int | None = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    return {"profile": await services.users.get_profile(db, viewer_id, username)}

@router.post("/{username}/follow")
async def follow(
    username: str,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    return {"profile": await services.users.follow(db, user_id, username)}

@router.delete("/{username}/follow")
async def unfollow(
    username: str,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    return {"profile": await services.users.unfollow(db, user_id, username)}
