"""SQLAlchemy 저장소 통합 테스트"""
import pytest
from datetime import date

from fullstock.core.entities.batch import Batch, BatchItem, BatchStatus
from fullstock.core.entities.product import Product
from fullstock.core.exceptions import NotFoundError, ValidationError
from fullstock.adapters.persistence.repositories import SqlCredentialStore, SqlProductRepository


@pytest.fixture
def credential_store_sql(session_factory):
    return SqlCredentialStore(session_factory, default_alert_threshold_days=7)


@pytest.fixture
def repository(session_factory):
    return SqlProductRepository(session_factory)


class TestSqlCredentialStore:
    """자격 증명 저장소 테스트"""

    @pytest.mark.asyncio
    async def test_unknown_user_is_disconnected(self, credential_store_sql):
        credential = await credential_store_sql.get("nobody")

        assert not credential.is_connected
        assert credential.alert_threshold_days == 7

    @pytest.mark.asyncio
    async def test_set_tokens_overwrites(self, credential_store_sql):
        await credential_store_sql.set_tokens("u1", "SELLER1", "a1", "r1")
        await credential_store_sql.set_tokens("u1", "SELLER1", "a2", "r2")

        credential = await credential_store_sql.get("u1")
        assert credential.is_connected
        assert (credential.access_token, credential.refresh_token) == ("a2", "r2")

    @pytest.mark.asyncio
    async def test_clear_connection_clears_all_three_fields(self, credential_store_sql):
        await credential_store_sql.set_tokens("u1", "SELLER1", "a1", "r1")
        await credential_store_sql.set_alert_threshold("u1", 10)

        await credential_store_sql.clear_connection("u1")

        credential = await credential_store_sql.get("u1")
        assert credential.marketplace_user_id is None
        assert credential.access_token is None
        assert credential.refresh_token is None
        assert credential.alert_threshold_days == 10

    @pytest.mark.asyncio
    async def test_users_are_isolated(self, credential_store_sql):
        await credential_store_sql.set_tokens("u1", "SELLER1", "a1", "r1")

        assert not (await credential_store_sql.get("u2")).is_connected


class TestSqlProductRepository:
    """상품/판매/배치 저장소 테스트"""

    @pytest.mark.asyncio
    async def test_create_and_list_products(self, repository):
        await repository.create_products("u1", [
            Product(id="p1", sku="A", title="상품 A", stock_factory=5, stock_full=3, marketplace_item_id="MLB1"),
            Product(id="p2", sku="B", title="상품 B"),
        ])
        await repository.create_products("u2", [Product(id="p3", sku="C", title="상품 C")])

        products = await repository.list_products("u1")

        assert sorted(product.sku for product in products) == ["A", "B"]
        stored = await repository.get_product("p1")
        assert stored.user_id == "u1"
        assert stored.marketplace_item_id == "MLB1"
        assert (stored.stock_factory, stored.stock_full) == (5, 3)

    @pytest.mark.asyncio
    async def test_update_stock_is_partial(self, repository):
        await repository.create_products("u1", [Product(id="p1", sku="A", title="A", stock_factory=5, stock_full=3)])

        await repository.update_stock("p1", stock_full=9)

        product = await repository.get_product("p1")
        assert (product.stock_factory, product.stock_full) == (5, 9)

    @pytest.mark.asyncio
    async def test_daily_sales_upsert_and_window(self, repository):
        await repository.create_products("u1", [Product(id="p1", sku="A", title="A")])

        await repository.record_daily_sales("p1", date(2024, 3, 1), 2)
        await repository.record_daily_sales("p1", date(2024, 3, 1), 5)
        await repository.record_daily_sales("p1", date(2024, 1, 1), 9)

        everything = (await repository.list_products("u1"))[0]
        windowed = (await repository.list_products("u1", sales_since=date(2024, 2, 15)))[0]

        assert [(sale.date, sale.quantity) for sale in everything.sales_history] == [
            (date(2024, 1, 1), 9), (date(2024, 3, 1), 5)
        ]
        assert [(sale.date, sale.quantity) for sale in windowed.sales_history] == [(date(2024, 3, 1), 5)]

    @pytest.mark.asyncio
    async def test_batch_roundtrip_and_status(self, repository):
        batch = Batch(
            id="b1",
            items=[BatchItem(product_id="p1", product_title="상품 A", quantity=4)],
            sent_date=date(2024, 3, 10)
        )
        await repository.create_batch("u1", batch)

        await repository.update_batch_status("b1", BatchStatus.RECEIVED, date(2024, 3, 12))

        stored = await repository.get_batch("b1")
        assert stored.status == BatchStatus.RECEIVED
        assert stored.received_date == date(2024, 3, 12)
        assert stored.items[0].quantity == 4
        assert [b.id for b in await repository.list_batches("u1")] == ["b1"]
        assert await repository.list_batches("u2") == []

    @pytest.mark.asyncio
    async def test_sku_is_unique_per_user(self, repository):
        await repository.create_products("u1", [Product(id="p1", sku="X", title="X")])

        with pytest.raises(ValidationError):
            await repository.create_products("u1", [Product(id="p2", sku="X", title="X 복제")])
        await repository.create_products("u2", [Product(id="p3", sku="X", title="X")])

        assert [product.id for product in await repository.list_products("u1")] == ["p1"]
        assert (await repository.get_product_by_sku("u1", "X")).id == "p1"
        assert await repository.get_product_by_sku("u1", "missing") is None

    @pytest.mark.asyncio
    async def test_save_sync_results_in_one_transaction(self, repository):
        await repository.create_products("u1", [
            Product(id="p1", sku="A", title="A", stock_full=10),
            Product(id="p2", sku="B", title="B", stock_full=4),
        ])
        await repository.record_daily_sales("p1", date(2024, 3, 1), 9)

        recorded = await repository.save_sync_results(
            {"p1": 7},
            {"p1": {date(2024, 3, 1): 2, date(2024, 3, 2): 0}, "p2": {date(2024, 3, 2): 1}}
        )

        products = {product.id: product for product in await repository.list_products("u1")}
        assert recorded == 3
        assert (products["p1"].stock_full, products["p2"].stock_full) == (7, 4)
        assert [(s.date, s.quantity) for s in products["p1"].sales_history] == [
            (date(2024, 3, 1), 2), (date(2024, 3, 2), 0)
        ]

    @pytest.mark.asyncio
    async def test_save_sync_results_rolls_back_on_failure(self, repository):
        """한 상품이라도 실패하면 아무것도 저장하지 않음"""
        await repository.create_products("u1", [Product(id="p1", sku="A", title="A", stock_full=10)])

        with pytest.raises(NotFoundError):
            await repository.save_sync_results({"p1": 7, "missing": 3}, {"p1": {date(2024, 3, 1): 5}})

        stored = await repository.get_product("p1")
        assert stored.stock_full == 10
        assert stored.sales_history == []
