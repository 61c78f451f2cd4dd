"""마켓 호출 갱신-재시도 래퍼"""
from typing import Awaitable, Callable, NoReturn, Optional, TypeVar
import uuid

from fullstock.core.entities.credential import Credential
from fullstock.core.entities.sync_run import SyncRun, SyncState, SyncType
from fullstock.core.exceptions import DisconnectedError, SessionExpiredError, UnauthorizedError
from fullstock.core.ports.credential_port import CredentialStorePort
from fullstock.core.ports.oauth_port import TokenRefresherPort
from fullstock.shared.config import Settings
from fullstock.shared.logging import get_logger, log_sync_transition

logger = get_logger(__name__)

T = TypeVar("T")

# (access_token, marketplace_user_id) -> 결과
MarketCall = Callable[[str, str], Awaitable[T]]


class MarketplaceSession:
    """동기화/가져오기 공통 인증 처리

    1) 연결 상태 확인 (네트워크 호출 전)
    2) 호출 -> 401이면 리프레시 토큰으로 1회 갱신 후 1회 재시도
    3) 갱신 불가/실패/재시도 401 -> 자격 증명 삭제 후 SessionExpiredError
    """

    def __init__(
        self,
        settings: Settings,
        credential_store: CredentialStorePort,
        refresh_coordinator: TokenRefresherPort
    ):
        self.settings = settings
        self.credential_store = credential_store
        self.refresh_coordinator = refresh_coordinator

    def new_run(self, sync_type: SyncType, app_user_id: str) -> SyncRun:
        return SyncRun(
            id=f"{sync_type.value}_{uuid.uuid4().hex[:12]}",
            sync_type=sync_type,
            app_user_id=app_user_id
        )

    async def load_connected(self, run: SyncRun) -> Credential:
        """연결된 자격 증명 조회 (미연결/데모 토큰이면 DisconnectedError)"""
        credential = await self.credential_store.get(run.app_user_id)

        if (
            not credential.access_token
            or not credential.marketplace_user_id
            or credential.is_demo(self.settings.mock_access_token)
        ):
            self._move(run, SyncState.DISCONNECTED)
            run.error_message = "disconnected"
            raise DisconnectedError()

        return credential

    async def execute(self, run: SyncRun, credential: Credential, call: MarketCall) -> T:
        """인증 실패 시 최대 1회 갱신-재시도"""
        self._move(run, SyncState.FETCHING)
        try:
            result = await call(credential.access_token, credential.marketplace_user_id)
        except UnauthorizedError:
            self._move(run, SyncState.UNAUTHORIZED)
        except Exception as e:
            self._fail(run, str(e))
            raise
        else:
            self._move(run, SyncState.SUCCESS)
            return result

        if not credential.refresh_token:
            logger.warning(f"리프레시 토큰 없음, 연결 해제: user={run.app_user_id}")
            await self._expire(run, "리프레시 토큰 없음")

        self._move(run, SyncState.REFRESHING)
        try:
            token_info = await self.refresh_coordinator.refresh(run.app_user_id, credential.refresh_token)
        except Exception as e:
            self._fail(run, str(e))
            raise

        if token_info is None:
            refreshed = await self._load_rotated(credential)
            if refreshed is None:
                logger.warning(f"토큰 갱신 실패, 연결 해제: user={run.app_user_id}")
                await self._expire(run, "토큰 갱신 실패")
            logger.info(f"다른 실행이 갱신한 토큰으로 재시도: user={run.app_user_id}")
        else:
            refreshed = credential.with_tokens(token_info)
            await self.credential_store.set_tokens(
                run.app_user_id,
                refreshed.marketplace_user_id,
                refreshed.access_token,
                refreshed.refresh_token
            )

        self._move(run, SyncState.RETRY_FETCHING)
        try:
            result = await call(refreshed.access_token, refreshed.marketplace_user_id)
        except UnauthorizedError:
            logger.warning(f"갱신 후에도 토큰 거부, 연결 해제: user={run.app_user_id}")
            await self._expire(run, "갱신 후 재시도 인증 실패")
        except Exception as e:
            self._fail(run, str(e))
            raise

        self._move(run, SyncState.SUCCESS)
        return result

    async def _load_rotated(self, credential: Credential) -> Optional[Credential]:
        """갱신이 거부된 사이 저장소의 리프레시 토큰이 바뀌었으면 그 자격 증명"""
        current = await self.credential_store.get(credential.app_user_id)
        if (
            current.access_token
            and current.marketplace_user_id
            and current.refresh_token
            and current.refresh_token != credential.refresh_token
        ):
            return current
        return None

    async def _expire(self, run: SyncRun, reason: str) -> NoReturn:
        await self.credential_store.clear_connection(run.app_user_id)
        previous = run.fail(reason, SyncState.DISCONNECTED)
        log_sync_transition(logger, run.id, previous.value, run.state.value)
        raise SessionExpiredError()

    def _fail(self, run: SyncRun, message: str) -> None:
        previous = run.fail(message)
        log_sync_transition(logger, run.id, previous.value, run.state.value)

    def _move(self, run: SyncRun, state: SyncState) -> None:
        previous = run.transition(state)
        log_sync_transition(logger, run.id, previous.value, state.value)
