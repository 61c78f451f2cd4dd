"""토큰 갱신 단일 비행(single-flight) 조정기"""
from typing import Dict, Optional
import asyncio

from fullstock.core.entities.credential import TokenInfo
from fullstock.core.ports.oauth_port import OAuthPort, TokenRefresherPort
from fullstock.shared.logging import get_logger, mask_token

logger = get_logger(__name__)


class RefreshCoordinator(TokenRefresherPort):
    """사용자별 진행 중인 토큰 갱신을 공유

    같은 사용자에 대해 동시에 들어온 갱신 요청은 하나의 리프레시 호출 결과를 함께 기다린다.
    """

    def __init__(self, oauth_port: OAuthPort):
        self.oauth_port = oauth_port
        self._in_flight: Dict[str, "asyncio.Task[Optional[TokenInfo]]"] = {}
        self._lock = asyncio.Lock()

    async def refresh(self, app_user_id: str, refresh_token: str) -> Optional[TokenInfo]:
        """토큰 갱신 (진행 중인 갱신이 있으면 합류)"""
        async with self._lock:
            task = self._in_flight.get(app_user_id)
            if task is None:
                logger.info(f"토큰 갱신 시작: user={app_user_id} refresh={mask_token(refresh_token)}")
                task = asyncio.ensure_future(self.oauth_port.refresh(refresh_token))
                self._in_flight[app_user_id] = task
                task.add_done_callback(lambda done, key=app_user_id: self._forget(key, done))
            else:
                logger.info(f"진행 중인 토큰 갱신에 합류: user={app_user_id}")

        # 한 호출자가 취소되어도 공유 갱신은 계속 진행
        return await asyncio.shield(task)

    def in_flight_count(self) -> int:
        return len(self._in_flight)

    def _forget(self, app_user_id: str, task: asyncio.Task) -> None:
        if self._in_flight.get(app_user_id) is task:
            self._in_flight.pop(app_user_id, None)
