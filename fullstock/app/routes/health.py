"""헬스체크 라우트"""
from fastapi import APIRouter, Depends
from datetime import datetime

from fullstock.shared.config import Settings, get_settings

router = APIRouter()


@router.get("/health")
async def health_check(settings: Settings = Depends(get_settings)):
    """서비스 헬스체크"""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "service": "fullstock-api",
        "version": "1.0.0",
        "demo_mode": not settings.is_marketplace_configured
    }
