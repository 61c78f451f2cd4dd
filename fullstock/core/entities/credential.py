"""마켓 연결 도메인 엔티티"""
from dataclasses import dataclass, field
from typing import Dict, Any, Optional
from datetime import datetime


@dataclass
class TokenInfo:
    """토큰 엔드포인트 응답"""
    access_token: str
    refresh_token: Optional[str] = None
    marketplace_user_id: Optional[str] = None
    expires_in: Optional[int] = None

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "TokenInfo":
        """토큰 응답 JSON -> TokenInfo"""
        user_id = data.get("user_id")
        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            marketplace_user_id=str(user_id) if user_id is not None else None,
            expires_in=data.get("expires_in")
        )


@dataclass
class Credential:
    """앱 사용자별 마켓 자격 증명"""
    app_user_id: str
    marketplace_user_id: Optional[str] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    alert_threshold_days: int = 5
    updated_at: Optional[datetime] = None

    @property
    def is_connected(self) -> bool:
        """액세스 토큰이 있으면 연결된 상태"""
        return bool(self.access_token)

    def is_demo(self, mock_token: str) -> bool:
        return self.access_token == mock_token

    def with_tokens(self, token_info: TokenInfo) -> "Credential":
        """갱신된 토큰으로 새 자격 증명 반환 (마켓 사용자 ID는 응답에 없으면 유지)"""
        return Credential(
            app_user_id=self.app_user_id,
            marketplace_user_id=token_info.marketplace_user_id or self.marketplace_user_id,
            access_token=token_info.access_token,
            refresh_token=token_info.refresh_token or self.refresh_token,
            alert_threshold_days=self.alert_threshold_days,
            updated_at=datetime.now()
        )

    def to_dict(self) -> Dict[str, Any]:
        """딕셔너리 변환 (토큰 제외)"""
        return {
            'app_user_id': self.app_user_id,
            'marketplace_user_id': self.marketplace_user_id,
            'is_connected': self.is_connected,
            'alert_threshold_days': self.alert_threshold_days,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }


@dataclass
class PkceSession:
    """진행 중인 단일 인가 시도"""
    state: str
    code_verifier: str
    redirect_uri: str
    app_user_id: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
