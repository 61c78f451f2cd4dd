"""애플리케이션 설정"""
from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field
import os


class Settings(BaseSettings):
    """애플리케이션 설정"""

    # 데이터베이스
    database_url: str = Field(default="sqlite+aiosqlite:///./fullstock.db")

    # 로깅
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    # API 설정
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    api_reload: bool = Field(default=False)

    # 마켓플레이스(Mercado Livre) OAuth 설정
    ml_client_id: Optional[str] = Field(default=None)
    ml_client_secret: Optional[str] = Field(default=None)
    ml_redirect_uri: Optional[str] = Field(default=None)
    ml_api_url: str = Field(default="https://api.mercadolibre.com")
    ml_auth_url: str = Field(default="https://auth.mercadolivre.com.br/authorization")

    # 동기화 설정
    request_timeout: float = Field(default=30.0)
    items_batch_size: int = Field(default=20, ge=1, le=20)
    sales_window_days: int = Field(default=30)
    strict_marketplace_reads: bool = Field(default=False)

    # 데모 모드에서 저장되는 예약 토큰
    mock_access_token: str = Field(default="mock_token")

    # 비즈니스 규칙
    default_alert_threshold_days: int = Field(default=5)

    class Config:
        # .env 파일이 있는 경우에만 읽기
        env_file = ".env" if os.path.exists(".env") else None
        case_sensitive = False

    @property
    def is_marketplace_configured(self) -> bool:
        """클라이언트 ID가 없으면 데모 모드"""
        return bool(self.ml_client_id)

    def resolve_redirect_uri(self, origin: Optional[str] = None) -> str:
        """명시적 리다이렉트 URI, 없으면 현재 origin에서 유도"""
        if self.ml_redirect_uri:
            return self.ml_redirect_uri
        if not origin:
            return "http://localhost:3000/auth/callback"
        return f"{origin.rstrip('/')}/auth/callback"


# 전역 설정 인스턴스
settings = Settings()


def get_settings() -> Settings:
    """설정 인스턴스 반환"""
    return settings
