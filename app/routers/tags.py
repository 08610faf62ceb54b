from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.dependencies import get_services
from app.services import Services

router = APIRouter(prefix="/tags", tags=["tags"])

@router.get("")
async def list_tags(
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    return {"tags": await services.tags.list_tags(db)}
