"""OAuth 토큰 엔드포인트 포트 (인터페이스)"""
from abc import ABC, abstractmethod
from typing import Optional

from fullstock.core.entities.credential import TokenInfo


class OAuthPort(ABC):
    """토큰 엔드포인트 인터페이스"""

    @abstractmethod
    async def exchange_code(self, code: str, code_verifier: str, redirect_uri: str) -> TokenInfo:
        """인가 코드 -> 토큰 교환 (1회 시도, 내부 재시도 없음)

        Raises:
            NotConfiguredError: 클라이언트 시크릿 미설정
            AuthorizationError: 공급자가 교환을 거부
            TransportError: 네트워크/파싱 실패
        """
        pass

    @abstractmethod
    async def refresh(self, refresh_token: str) -> Optional[TokenInfo]:
        """리프레시 토큰으로 새 토큰 발급

        거부되거나 클라이언트 정보가 없으면 None. 전송 실패만 TransportError.
        """
        pass


class TokenRefresherPort(ABC):
    """앱 사용자 단위 토큰 갱신 인터페이스"""

    @abstractmethod
    async def refresh(self, app_user_id: str, refresh_token: str) -> Optional[TokenInfo]:
        """사용자 토큰 갱신 (거부되면 None)"""
        pass
