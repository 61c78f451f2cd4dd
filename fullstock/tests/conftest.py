"""공용 테스트 픽스처"""
import pytest
from typing import Dict, List, Optional
from datetime import date, datetime, timedelta, timezone
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool

from fullstock.core.entities.credential import Credential, TokenInfo
from fullstock.core.exceptions import UnauthorizedError
from fullstock.core.ports.clock_port import ClockPort
from fullstock.core.ports.credential_port import CredentialStorePort
from fullstock.core.ports.marketplace_port import MarketplacePort, RemoteItem, SalesMap
from fullstock.core.ports.oauth_port import OAuthPort
from fullstock.adapters.persistence.models import Base
from fullstock.shared.config import Settings


class FakeCredentialStore(CredentialStorePort):
    """메모리 자격 증명 저장소"""

    def __init__(self):
        self.credentials: Dict[str, Credential] = {}
        self.cleared: List[str] = []
        self.saved: List[str] = []

    async def get(self, app_user_id: str) -> Credential:
        return self.credentials.get(app_user_id) or Credential(app_user_id=app_user_id)

    async def set_tokens(self, app_user_id, marketplace_user_id, access_token, refresh_token) -> None:
        current = self.credentials.get(app_user_id) or Credential(app_user_id=app_user_id)
        self.credentials[app_user_id] = Credential(
            app_user_id=app_user_id,
            marketplace_user_id=marketplace_user_id,
            access_token=access_token,
            refresh_token=refresh_token,
            alert_threshold_days=current.alert_threshold_days
        )
        self.saved.append(access_token)

    async def clear_connection(self, app_user_id: str) -> None:
        self.cleared.append(app_user_id)
        current = self.credentials.get(app_user_id) or Credential(app_user_id=app_user_id)
        self.credentials[app_user_id] = Credential(
            app_user_id=app_user_id,
            alert_threshold_days=current.alert_threshold_days
        )

    async def set_alert_threshold(self, app_user_id: str, days: int) -> None:
        current = self.credentials.get(app_user_id) or Credential(app_user_id=app_user_id)
        current.alert_threshold_days = days
        self.credentials[app_user_id] = current


class FakeMarketplace(MarketplacePort):
    """마켓 조회 스텁

    rejected_tokens에 포함된 토큰으로 호출되면 UnauthorizedError를 발생시킨다.
    """

    def __init__(self):
        self.stock: List[RemoteItem] = []
        self.listings: List[RemoteItem] = []
        self.sales: SalesMap = {}
        self.rejected_tokens = set()
        self.reject_all = False
        self.calls: List[tuple] = []

    def _check(self, name: str, access_token: str, marketplace_user_id: str) -> None:
        self.calls.append((name, access_token, marketplace_user_id))
        if self.reject_all or access_token in self.rejected_tokens:
            raise UnauthorizedError(endpoint=name)

    async def fetch_fulfillment_stock(self, access_token, marketplace_user_id):
        self._check("stock", access_token, marketplace_user_id)
        return list(self.stock)

    async def fetch_active_listings(self, access_token, marketplace_user_id):
        self._check("listings", access_token, marketplace_user_id)
        return list(self.listings)

    async def fetch_sales_history(self, access_token, marketplace_user_id):
        self._check("sales", access_token, marketplace_user_id)
        return dict(self.sales)


class FakeOAuth(OAuthPort):
    """토큰 엔드포인트 스텁"""

    def __init__(self):
        self.refresh_result: Optional[TokenInfo] = TokenInfo(
            access_token="new_access",
            refresh_token="new_refresh",
            marketplace_user_id="SELLER1"
        )
        self.exchange_result = TokenInfo(
            access_token="issued_access",
            refresh_token="issued_refresh",
            marketplace_user_id="SELLER1"
        )
        self.refresh_calls: List[str] = []
        self.exchange_calls: List[tuple] = []

    async def exchange_code(self, code, code_verifier, redirect_uri):
        self.exchange_calls.append((code, code_verifier, redirect_uri))
        return self.exchange_result

    async def refresh(self, refresh_token):
        self.refresh_calls.append(refresh_token)
        return self.refresh_result


class FixedClock(ClockPort):
    """고정 시각 클록"""

    def __init__(self, now: datetime):
        self._now = now

    def now(self) -> datetime:
        return self._now

    def today(self) -> date:
        return self._now.date()

    def days_ago(self, days: int) -> datetime:
        return self._now - timedelta(days=days)


@pytest.fixture
def settings():
    """마켓 자격 증명이 설정된 테스트 설정"""
    return Settings(
        ml_client_id="client-123",
        ml_client_secret="secret-456",
        ml_redirect_uri=None,
        ml_api_url="https://api.test.local",
        ml_auth_url="https://auth.test.local/authorization",
        database_url="sqlite+aiosqlite://"
    )


@pytest.fixture
def demo_settings():
    """클라이언트 ID가 없는 데모 모드 설정"""
    return Settings(ml_client_id=None, ml_client_secret=None, database_url="sqlite+aiosqlite://")


@pytest.fixture
def credential_store():
    return FakeCredentialStore()


@pytest.fixture
def marketplace():
    return FakeMarketplace()


@pytest.fixture
def oauth():
    return FakeOAuth()


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def database_url(tmp_path):
    """테스트별 SQLite 파일"""
    return f"sqlite+aiosqlite:///{tmp_path / 'fullstock_test.db'}"


@pytest.fixture
async def session_factory(database_url):
    """테이블이 생성된 세션 팩토리"""
    engine = create_async_engine(database_url, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()
