"""PKCE 인가 세션 저장소 어댑터 (프로세스 메모리)"""
from typing import Dict, Optional
from datetime import datetime, timedelta
import asyncio

from fullstock.core.entities.credential import PkceSession
from fullstock.core.ports.credential_port import VerifierStorePort
from fullstock.shared.logging import get_logger

logger = get_logger(__name__)


class InMemoryVerifierStore(VerifierStorePort):
    """state 키 기반 PKCE 세션 저장소"""

    def __init__(self, max_age_minutes: int = 10):
        self.max_age = timedelta(minutes=max_age_minutes)
        self._sessions: Dict[str, PkceSession] = {}
        self._lock = asyncio.Lock()

    async def save(self, session: PkceSession) -> None:
        """세션 저장 (버려진 인가 시도는 이때 함께 정리)"""
        async with self._lock:
            expired = self._purge_expired()
            self._sessions[session.state] = session

        if expired:
            logger.info(f"만료된 인가 세션 정리 완료: {expired}개")

    async def get(self, state: str) -> Optional[PkceSession]:
        async with self._lock:
            session = self._sessions.get(state)
            if session and self._is_expired(session):
                self._sessions.pop(state, None)
                logger.info("만료된 인가 세션 폐기")
                return None
            return session

    async def delete(self, state: str) -> None:
        async with self._lock:
            self._sessions.pop(state, None)

    def session_count(self) -> int:
        return len(self._sessions)

    def _purge_expired(self) -> int:
        expired = [key for key, session in self._sessions.items() if self._is_expired(session)]
        for key in expired:
            self._sessions.pop(key, None)
        return len(expired)

    def _is_expired(self, session: PkceSession) -> bool:
        return datetime.now() - session.created_at > self.max_age
