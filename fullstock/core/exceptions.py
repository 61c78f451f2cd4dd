"""헥사고날 아키텍처 예외 처리"""
from typing import Optional, Dict, Any

from fastapi import HTTPException, status


class FullStockError(Exception):
    """재고 관리 기본 예외"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotConfiguredError(FullStockError):
    """클라이언트 ID/시크릿/verifier 미설정"""
    pass


ConfigurationError = NotConfiguredError


class VerifierNotFoundError(NotConfiguredError):
    """PKCE verifier를 찾을 수 없음 (만료, 사용됨, 다른 사용자)"""

    def __init__(self, message: str = "인증 세션을 찾을 수 없습니다. 마켓 연결을 다시 시작해 주세요.",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class UnauthorizedError(FullStockError):
    """마켓플레이스가 액세스 토큰을 거부함 (HTTP 401)

    오케스트레이터 내부에서만 소비되며 사용자에게 직접 노출되지 않는다.
    """

    def __init__(self, message: str = "액세스 토큰이 거부되었습니다", endpoint: Optional[str] = None):
        super().__init__(message, {"endpoint": endpoint} if endpoint else None)
        self.endpoint = endpoint


class SessionExpiredError(FullStockError):
    """토큰 갱신 실패 - 계정 재연결 필요"""

    def __init__(self, message: str = "마켓 세션이 만료되었습니다. 설정에서 계정을 다시 연결해 주세요.",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class TransportError(FullStockError):
    """네트워크/응답 파싱 실패"""

    def __init__(self, message: str, endpoint: str = None, status_code: int = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.endpoint = endpoint
        self.status_code = status_code


class AuthorizationError(FullStockError):
    """인가 코드 교환이 공급자에 의해 거부됨"""

    def __init__(self, message: str, error_code: str = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.error_code = error_code


class ValidationError(FullStockError):
    """로컬 사전조건 검증 에러"""

    def __init__(self, message: str, field: str = None, value: Any = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.field = field
        self.value = value


class DisconnectedError(ValidationError):
    """마켓 계정이 연결되지 않은 상태에서 동기화 시도"""

    def __init__(self, message: str = "마켓 계정이 연결되어 있지 않습니다. 먼저 계정을 연결해 주세요."):
        super().__init__(message, field="access_token")


class NotFoundError(FullStockError):
    """상품/배치 없음"""
    pass


def create_http_exception(error: FullStockError, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> HTTPException:
    """도메인 에러를 HTTP 예외로 변환"""

    # 에러 타입별 상태코드 매핑
    error_type_mapping = {
        ValidationError: status.HTTP_400_BAD_REQUEST,
        AuthorizationError: status.HTTP_400_BAD_REQUEST,
        SessionExpiredError: status.HTTP_401_UNAUTHORIZED,
        NotFoundError: status.HTTP_404_NOT_FOUND,
        NotConfiguredError: status.HTTP_409_CONFLICT,
        TransportError: status.HTTP_502_BAD_GATEWAY,
    }

    for error_type, mapped_status in error_type_mapping.items():
        if isinstance(error, error_type):
            status_code = mapped_status
            break

    return HTTPException(
        status_code=status_code,
        detail={
            "message": error.message,
            "type": error.__class__.__name__,
            "details": error.details
        }
    )
