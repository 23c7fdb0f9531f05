from datetime import datetime
from fastapi import APIRouter

from config import settings

router = APIRouter()


@router.get("/health", summary="健康检查")
async def health_check():
    """检查服务是否正常运行"""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": "1.0.0",
        "auto_precision_max": settings.geohash_auto_precision_max,
    }
