"""마켓 연결/동기화 DTO 스키마"""
from typing import List, Optional
from pydantic import BaseModel, Field


class AuthorizeRequest(BaseModel):
    """인가 시작 요청"""
    origin: Optional[str] = Field(None, description="리다이렉트 URI 유도용 현재 origin")


class AuthorizeResponse(BaseModel):
    """인가 시작 응답 (데모 모드면 URL 없이 바로 연결)"""
    authorization_url: Optional[str] = None
    state: Optional[str] = None
    redirect_uri: Optional[str] = None
    demo_mode: bool = False


class CallbackRequest(BaseModel):
    """인가 콜백 요청"""
    code: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)


class ConnectionStatusResponse(BaseModel):
    """마켓 연결 상태"""
    connected: bool
    marketplace_user_id: Optional[str] = None
    alert_threshold_days: int
    demo_mode: bool = False


class SettingsUpdateRequest(BaseModel):
    """알림 설정 변경"""
    alert_threshold_days: int = Field(..., ge=1, le=90)


class SyncResponse(BaseModel):
    """동기화 결과 요약"""
    success: bool = True
    message: str
    products_updated: int = 0
    sales_days_recorded: int = 0
    refreshed: bool = False
    demo_mode: bool = False
    run_id: Optional[str] = None
    path: List[str] = []


class ImportResponse(BaseModel):
    """리스팅 가져오기 결과"""
    created: int
    message: str
