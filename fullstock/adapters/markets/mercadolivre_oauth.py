"""Mercado Livre OAuth 토큰 엔드포인트 어댑터"""
import httpx
import time
from typing import Dict, Any, Optional

from fullstock.core.entities.credential import TokenInfo
from fullstock.core.exceptions import AuthorizationError, NotConfiguredError, TransportError
from fullstock.core.ports.oauth_port import OAuthPort
from fullstock.shared.config import Settings
from fullstock.shared.logging import get_logger, log_api_request, mask_token

logger = get_logger(__name__)

TOKEN_PATH = "/oauth/token"


class MercadoLivreOAuthAdapter(OAuthPort):
    """Mercado Livre 토큰 엔드포인트 어댑터"""

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.token_url = f"{settings.ml_api_url.rstrip('/')}{TOKEN_PATH}"
        self.client = client or httpx.AsyncClient(timeout=settings.request_timeout)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.client.aclose()

    async def exchange_code(self, code: str, code_verifier: str, redirect_uri: str) -> TokenInfo:
        """인가 코드 -> 토큰 교환"""
        if not self.settings.ml_client_id or not self.settings.ml_client_secret:
            raise NotConfiguredError("마켓 앱 자격 증명(client id/secret)이 설정되지 않았습니다")

        form = {
            "grant_type": "authorization_code",
            "client_id": self.settings.ml_client_id,
            "client_secret": self.settings.ml_client_secret,
            "code": code,
            "redirect_uri": redirect_uri,
            "code_verifier": code_verifier
        }

        response = await self._post_token(form)
        payload = self._parse_body(response)

        if not response.is_success:
            raise self._map_exchange_error(response.status_code, payload, redirect_uri)

        token_info = self._to_token_info(payload)
        logger.info(
            f"인가 코드 교환 완료: seller={token_info.marketplace_user_id} "
            f"access={mask_token(token_info.access_token)}"
        )
        return token_info

    async def refresh(self, refresh_token: str) -> Optional[TokenInfo]:
        """리프레시 토큰으로 새 토큰 발급"""
        if not self.settings.ml_client_id or not self.settings.ml_client_secret:
            logger.warning("마켓 앱 자격 증명이 없어 토큰 갱신을 건너뜁니다")
            return None

        form = {
            "grant_type": "refresh_token",
            "client_id": self.settings.ml_client_id,
            "client_secret": self.settings.ml_client_secret,
            "refresh_token": refresh_token
        }

        response = await self._post_token(form)

        if response.status_code >= 500:
            raise TransportError(
                f"토큰 갱신 서버 오류: {response.status_code}",
                endpoint=TOKEN_PATH,
                status_code=response.status_code
            )

        if not response.is_success:
            payload = self._parse_body(response)
            logger.warning(
                f"토큰 갱신 거부: {response.status_code} - "
                f"{payload.get('error') or payload.get('message') or 'unknown'}"
            )
            return None

        return self._to_token_info(self._parse_body(response))

    async def _post_token(self, form: Dict[str, str]) -> httpx.Response:
        """토큰 엔드포인트 POST (form-encoded)"""
        started = time.monotonic()
        try:
            response = await self.client.post(
                self.token_url,
                data=form,
                headers={"Accept": "application/json"}
            )
        except httpx.RequestError as e:
            logger.error(f"토큰 엔드포인트 요청 실패 ({form['grant_type']}): {e}")
            raise TransportError(f"마켓 인증 서버에 연결할 수 없습니다: {e}", endpoint=TOKEN_PATH)

        log_api_request(logger, "POST", TOKEN_PATH, response.status_code, time.monotonic() - started)
        return response

    def _parse_body(self, response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            if response.is_success:
                raise TransportError("토큰 응답을 해석할 수 없습니다", endpoint=TOKEN_PATH,
                                     status_code=response.status_code)
            return {"message": response.text}
        return body if isinstance(body, dict) else {}

    def _to_token_info(self, payload: Dict[str, Any]) -> TokenInfo:
        try:
            return TokenInfo.from_response(payload)
        except KeyError:
            raise TransportError("토큰 응답에 access_token이 없습니다", endpoint=TOKEN_PATH)

    def _map_exchange_error(
        self,
        status_code: int,
        payload: Dict[str, Any],
        redirect_uri: str
    ) -> AuthorizationError:
        """공급자 에러 코드 -> 사용자 메시지"""
        error_code = payload.get("error") or ""
        provider_message = payload.get("message") or ""
        logger.error(f"인가 코드 교환 실패: {status_code} - {error_code} {provider_message}")

        if error_code == "invalid_grant":
            message = "인가 코드가 만료되었거나 이미 사용되었습니다. 다시 시도해 주세요."
        elif error_code == "invalid_client":
            message = "마켓 앱 자격 증명(client id/secret)이 올바르지 않습니다."
        elif error_code == "redirect_uri_mismatch":
            message = f"리다이렉트 URI가 앱 설정과 일치하지 않습니다. 등록해야 할 URI: {redirect_uri}"
        else:
            message = f"토큰 교환 실패 ({status_code}): {provider_message or error_code or '알 수 없는 오류'}"

        return AuthorizationError(
            message,
            error_code=error_code or None,
            details={"status_code": status_code, "provider_message": provider_message}
        )
