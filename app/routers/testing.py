from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.services import testing_service

router = APIRouter(prefix="/api/v1/testing", tags=["testing"])


@router.delete("/all-data", status_code=204)
async def delete_all_data(db: AsyncSession = Depends(get_db)):
    await testing_service.delete_all_data(db)
