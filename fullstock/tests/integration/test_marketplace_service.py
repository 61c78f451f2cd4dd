"""마켓 서비스 파사드 통합 테스트"""
import random
import pytest
from datetime import date

from fullstock.core.entities.product import Product, RuptureStatus
from fullstock.core.exceptions import SessionExpiredError
from fullstock.core.ports.marketplace_port import RemoteItem
from fullstock.core.usecases.authorize_account import PkceAuthorizer
from fullstock.core.usecases.import_listings import ImportListingsUseCase
from fullstock.core.usecases.marketplace_session import MarketplaceSession
from fullstock.core.usecases.sync_marketplace import SyncMarketplaceUseCase
from fullstock.adapters.auth.refresh_coordinator import RefreshCoordinator
from fullstock.adapters.auth.verifier_store import InMemoryVerifierStore
from fullstock.adapters.persistence.repositories import SqlCredentialStore, SqlProductRepository
from fullstock.services.marketplace_service import MarketplaceService

USER = "u1"


class ScriptedRandom(random.Random):
    """정해진 순서로 값을 돌려주는 난수원"""

    def __init__(self, randoms, ints):
        super().__init__(0)
        self.randoms = list(randoms)
        self.ints = list(ints)

    def random(self):
        return self.randoms.pop(0)

    def randint(self, a, b):
        return self.ints.pop(0)


def build_service(settings, session_factory, marketplace, oauth, clock, rng=None) -> MarketplaceService:
    credential_store = SqlCredentialStore(session_factory)
    repository = SqlProductRepository(session_factory)
    session = MarketplaceSession(settings, credential_store, RefreshCoordinator(oauth))
    return MarketplaceService(
        settings=settings,
        authorizer=PkceAuthorizer(settings, oauth, InMemoryVerifierStore()),
        credential_store=credential_store,
        sync_usecase=SyncMarketplaceUseCase(marketplace, session),
        import_usecase=ImportListingsUseCase(marketplace, repository, session),
        repository=repository,
        clock=clock,
        rng=rng
    )


class TestConnectionFlow:
    """연결/해제 흐름 테스트"""

    @pytest.mark.asyncio
    async def test_authorize_and_callback(self, settings, session_factory, marketplace, oauth, clock):
        service = build_service(settings, session_factory, marketplace, oauth, clock)

        started = await service.start_authorization(USER, "https://app.example.com")
        status = await service.complete_authorization(USER, "CODE", started.state)

        assert not started.demo_mode
        assert started.authorization_url.startswith("https://auth.test.local/authorization?")
        assert status.connected
        assert status.marketplace_user_id == "SELLER1"

        status = await service.disconnect(USER)
        assert not status.connected

    @pytest.mark.asyncio
    async def test_demo_authorization_connects_with_mock_token(self, demo_settings, session_factory,
                                                               marketplace, oauth, clock):
        service = build_service(demo_settings, session_factory, marketplace, oauth, clock)

        started = await service.start_authorization(USER, "https://app.example.com")
        status = await service.get_status(USER)

        assert started.demo_mode
        assert started.authorization_url is None
        assert status.connected
        assert status.marketplace_user_id == "DEMO"
        assert oauth.exchange_calls == []


class TestSyncInventory:
    """동기화 영속화 테스트"""

    @pytest.mark.asyncio
    async def test_sync_persists_stock_and_sales(self, settings, session_factory, marketplace, oauth, clock):
        service = build_service(settings, session_factory, marketplace, oauth, clock)
        repository = service.repository
        await service.credential_store.set_tokens(USER, "SELLER1", "access", "refresh")
        await repository.create_products(USER, [
            Product(id="p1", sku="X", title="X", stock_full=10),
            Product(id="p2", sku="Y", title="Y", stock_full=4, marketplace_item_id="MLB-Y"),
            Product(id="p3", sku="Z", title="Z", stock_full=2),
        ])
        marketplace.stock = [
            RemoteItem(marketplace_item_id="MLB-X", title="X", sku="X", stock_full=7),
            RemoteItem(marketplace_item_id="MLB-Y", title="Y", sku="Y-OTHER", stock_full=1),
        ]
        marketplace.sales = {"X": {"2024-03-14": 2, "2024-03-13": 1}, "MLB-Y": {"2024-03-14": 3}}

        result = await service.sync_inventory(USER)

        assert result.products_updated == 2
        assert result.sales_days_recorded == 90
        assert not result.refreshed
        assert result.path == ["fetching", "success"]

        products = {p.id: p for p in await repository.list_products(USER)}
        assert products["p1"].stock_full == 7
        assert products["p2"].stock_full == 1
        assert products["p3"].stock_full == 2
        p1_sales = {s.date: s.quantity for s in products["p1"].sales_history}
        assert len(p1_sales) == 30
        assert (p1_sales[date(2024, 3, 13)], p1_sales[date(2024, 3, 14)]) == (1, 2)
        assert sum(p1_sales.values()) == 3
        assert {s.date: s.quantity for s in products["p2"].sales_history}[date(2024, 3, 14)] == 3
        assert sum(s.quantity for s in products["p3"].sales_history) == 0

    @pytest.mark.asyncio
    async def test_days_without_orders_count_in_average(self, settings, session_factory, marketplace, oauth, clock):
        """주문 없는 날도 0으로 기록되어 일평균에 반영"""
        service = build_service(settings, session_factory, marketplace, oauth, clock)
        await service.credential_store.set_tokens(USER, "SELLER1", "access", "refresh")
        await service.repository.create_products(USER, [Product(id="p1", sku="X", title="X", stock_full=50)])
        marketplace.sales = {"X": {"2024-03-01": 10}}

        await service.sync_inventory(USER)

        stored = (await service.repository.list_products(USER, sales_since=date(2024, 2, 15)))[0]
        assert stored.avg_daily_sales == pytest.approx(10 / 30)
        prediction = stored.predict_rupture()
        assert prediction.days_left == 150
        assert prediction.status == RuptureStatus.HEALTHY

    @pytest.mark.asyncio
    async def test_expired_session_keeps_local_state(self, settings, session_factory, marketplace, oauth, clock):
        service = build_service(settings, session_factory, marketplace, oauth, clock)
        await service.credential_store.set_tokens(USER, "SELLER1", "access", "refresh")
        await service.repository.create_products(USER, [Product(id="p1", sku="X", title="X", stock_full=10)])
        marketplace.reject_all = True

        with pytest.raises(SessionExpiredError):
            await service.sync_inventory(USER)

        assert (await service.repository.get_product("p1")).stock_full == 10
        assert not (await service.get_status(USER)).connected

    @pytest.mark.asyncio
    async def test_demo_sync_simulates_sales(self, demo_settings, session_factory, marketplace, oauth, clock):
        rng = ScriptedRandom(randoms=[0.1, 0.9], ints=[3])
        service = build_service(demo_settings, session_factory, marketplace, oauth, clock, rng)
        await service.repository.create_products(USER, [
            Product(id="p1", sku="X", title="X", stock_full=2),
            Product(id="p2", sku="Y", title="Y", stock_full=8),
        ])

        result = await service.sync_inventory(USER)

        assert result.demo_mode
        assert result.products_updated == 1
        assert marketplace.calls == []
        products = {p.id: p for p in await service.repository.list_products(USER)}
        assert products["p1"].stock_full == 0
        assert products["p2"].stock_full == 8
        assert [(s.date, s.quantity) for s in products["p1"].sales_history] == [(clock.today(), 3)]
        assert [(s.date, s.quantity) for s in products["p2"].sales_history] == [(clock.today(), 0)]

    @pytest.mark.asyncio
    async def test_import_listings(self, settings, session_factory, marketplace, oauth, clock):
        service = build_service(settings, session_factory, marketplace, oauth, clock)
        await service.credential_store.set_tokens(USER, "SELLER1", "access", "refresh")
        await service.repository.create_products(USER, [Product(id="p1", sku="A", title="A")])
        marketplace.listings = [
            RemoteItem(marketplace_item_id="MLB1", title="A", sku="A", stock_full=1),
            RemoteItem(marketplace_item_id="MLB2", title="B", sku="B", stock_full=5),
        ]

        result = await service.import_listings(USER)

        assert result.created == 1
        skus = sorted(p.sku for p in await service.repository.list_products(USER))
        assert skus == ["A", "B"]
