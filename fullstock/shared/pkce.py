"""PKCE (RFC 7636) 유틸리티"""
import base64
import hashlib
import secrets

CODE_CHALLENGE_METHOD = "S256"

# 64바이트 난수 -> base64url 86자 (512비트)
VERIFIER_BYTES = 64


def _b64url(data: bytes) -> str:
    """패딩 없는 base64url 인코딩"""
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def generate_code_verifier(num_bytes: int = VERIFIER_BYTES) -> str:
    """고엔트로피 code_verifier 생성"""
    if num_bytes < 32:
        raise ValueError("code_verifier는 최소 32바이트(256비트) 이상이어야 합니다")
    return _b64url(secrets.token_bytes(num_bytes))


def derive_code_challenge(code_verifier: str) -> str:
    """S256 code_challenge 계산"""
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return _b64url(digest)


def generate_state() -> str:
    """인가 요청 세션 키 (OAuth state)"""
    return secrets.token_urlsafe(24)
