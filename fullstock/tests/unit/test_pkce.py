"""PKCE 유틸리티 단위 테스트"""
import re
import pytest

from fullstock.shared.pkce import (
    CODE_CHALLENGE_METHOD,
    generate_code_verifier,
    derive_code_challenge,
    generate_state
)

UNRESERVED = re.compile(r"^[A-Za-z0-9\-._~]+$")


class TestCodeVerifier:
    """code_verifier 생성 테스트"""

    def test_default_verifier_length_and_alphabet(self):
        """64바이트 -> 패딩 없는 base64url 86자"""
        verifier = generate_code_verifier()

        assert len(verifier) == 86
        assert UNRESERVED.match(verifier)
        assert "=" not in verifier

    def test_verifiers_are_unique(self):
        assert generate_code_verifier() != generate_code_verifier()

    def test_low_entropy_rejected(self):
        with pytest.raises(ValueError):
            generate_code_verifier(16)


class TestCodeChallenge:
    """S256 challenge 계산 테스트"""

    def test_rfc7636_vector(self):
        """RFC 7636 부록 B 예시값"""
        verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"

        assert derive_code_challenge(verifier) == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"

    def test_challenge_has_no_padding(self):
        challenge = derive_code_challenge(generate_code_verifier())

        assert len(challenge) == 43
        assert not challenge.endswith("=")

    def test_method_is_s256(self):
        assert CODE_CHALLENGE_METHOD == "S256"


def test_state_values_differ():
    assert generate_state() != generate_state()
