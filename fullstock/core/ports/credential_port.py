"""자격 증명/인가 세션 저장소 포트 (인터페이스)"""
from abc import ABC, abstractmethod
from typing import Optional

from fullstock.core.entities.credential import Credential, PkceSession


class CredentialStorePort(ABC):
    """앱 사용자별 마켓 자격 증명 저장소"""

    @abstractmethod
    async def get(self, app_user_id: str) -> Credential:
        """자격 증명 조회 (없으면 연결 안 된 빈 자격 증명)"""
        pass

    @abstractmethod
    async def set_tokens(
        self,
        app_user_id: str,
        marketplace_user_id: Optional[str],
        access_token: str,
        refresh_token: Optional[str]
    ) -> None:
        """토큰 저장 (덮어쓰기)"""
        pass

    @abstractmethod
    async def clear_connection(self, app_user_id: str) -> None:
        """마켓 사용자 ID/액세스/리프레시 토큰 모두 삭제"""
        pass

    @abstractmethod
    async def set_alert_threshold(self, app_user_id: str, days: int) -> None:
        """알림 기준 일수 저장"""
        pass


class VerifierStorePort(ABC):
    """PKCE 인가 세션 저장소 (state 키)"""

    @abstractmethod
    async def save(self, session: PkceSession) -> None:
        """세션 저장 (같은 state는 덮어쓰기)"""
        pass

    @abstractmethod
    async def get(self, state: str) -> Optional[PkceSession]:
        """세션 조회"""
        pass

    @abstractmethod
    async def delete(self, state: str) -> None:
        """세션 삭제 (1회용 소비)"""
        pass
