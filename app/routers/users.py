from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.dependencies import get_current_user_id, get_services
from app.schemas import LoginRequest, RegisterRequest, UserUpdateRequest
from app.services import Services

router = APIRouter(tags=["users"])

@router.post("/users", status_code=201)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    return {"user": await services.users.register(db, data.user)}

@router.post("/users/login")
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    return {"user": await services.users.login(db, data.user.email, data.user.password)}

@router.get("/user")
async def get_current_user(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    return {"user": await services.users.get_current_user(db, user_id)}

@router.put("/user")
async def update_user(
    data: UserUpdateRequest,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    return {"user": await services.users.update_user(db, user_id, data.user)}
