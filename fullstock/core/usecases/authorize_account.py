"""마켓 계정 인가(PKCE) 유즈케이스"""
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

from fullstock.core.entities.credential import PkceSession, TokenInfo
from fullstock.core.exceptions import NotConfiguredError, VerifierNotFoundError
from fullstock.core.ports.oauth_port import OAuthPort
from fullstock.core.ports.credential_port import VerifierStorePort
from fullstock.shared.config import Settings
from fullstock.shared.logging import get_logger
from fullstock.shared.pkce import (
    CODE_CHALLENGE_METHOD,
    generate_code_verifier,
    derive_code_challenge,
    generate_state
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class AuthorizationRequest:
    """인가 페이지 리다이렉트 정보"""
    authorization_url: str
    state: str
    redirect_uri: str


class PkceAuthorizer:
    """PKCE 인가 URL 생성 및 인가 코드 교환"""

    def __init__(self, settings: Settings, oauth_port: OAuthPort, verifier_store: VerifierStorePort):
        self.settings = settings
        self.oauth_port = oauth_port
        self.verifier_store = verifier_store

    async def build_authorization_url(
        self,
        origin: Optional[str] = None,
        app_user_id: Optional[str] = None
    ) -> AuthorizationRequest:
        """인가 URL 생성 (verifier는 state 키로 저장)"""
        if not self.settings.ml_client_id:
            raise NotConfiguredError("마켓 클라이언트 ID가 설정되지 않았습니다 (데모 모드)")

        code_verifier = generate_code_verifier()
        redirect_uri = self.settings.resolve_redirect_uri(origin)
        session = PkceSession(
            state=generate_state(),
            code_verifier=code_verifier,
            redirect_uri=redirect_uri,
            app_user_id=app_user_id
        )
        await self.verifier_store.save(session)

        query = urlencode({
            "response_type": "code",
            "client_id": self.settings.ml_client_id,
            "redirect_uri": redirect_uri,
            "code_challenge": derive_code_challenge(code_verifier),
            "code_challenge_method": CODE_CHALLENGE_METHOD,
            "state": session.state
        })

        logger.info(f"인가 URL 생성: user={app_user_id} redirect_uri={redirect_uri}")
        return AuthorizationRequest(
            authorization_url=f"{self.settings.ml_auth_url}?{query}",
            state=session.state,
            redirect_uri=redirect_uri
        )

    async def exchange_code(self, code: str, app_user_id: str, state: str) -> TokenInfo:
        """인가 코드 교환 (1회만 시도, 성공 시 verifier 삭제)"""
        session = await self.verifier_store.get(state)
        if session is None:
            raise VerifierNotFoundError()

        if session.app_user_id is not None and session.app_user_id != app_user_id:
            logger.warning(f"다른 사용자의 인가 세션 사용 시도: user={app_user_id}")
            raise VerifierNotFoundError()

        token_info = await self.oauth_port.exchange_code(code, session.code_verifier, session.redirect_uri)

        await self.verifier_store.delete(state)
        logger.info(f"마켓 계정 인가 완료: user={app_user_id} seller={token_info.marketplace_user_id}")
        return token_info
