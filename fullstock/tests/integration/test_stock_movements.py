"""재고 이동 유즈케이스 통합 테스트"""
import pytest
from datetime import date

from fullstock.core.entities.batch import BatchStatus
from fullstock.core.entities.product import Product
from fullstock.core.exceptions import NotFoundError, ValidationError
from fullstock.core.usecases.manage_stock import ManageStockUseCase
from fullstock.adapters.persistence.repositories import SqlProductRepository

USER = "u1"


@pytest.fixture
async def repository(session_factory):
    repository = SqlProductRepository(session_factory)
    await repository.create_products(USER, [
        Product(id="p1", sku="A", title="상품 A", stock_factory=10),
        Product(id="p2", sku="B", title="상품 B", stock_factory=3),
    ])
    return repository


@pytest.fixture
def usecase(repository, clock):
    return ManageStockUseCase(repository, clock)


class TestProduction:
    """공장 생산 테스트"""

    @pytest.mark.asyncio
    async def test_commit_production(self, usecase, repository):
        await usecase.commit_production("p1", 5)

        assert (await repository.get_product("p1")).stock_factory == 15

    @pytest.mark.asyncio
    async def test_invalid_amount(self, usecase):
        with pytest.raises(ValidationError):
            await usecase.commit_production("p1", 0)

    @pytest.mark.asyncio
    async def test_unknown_product(self, usecase):
        with pytest.raises(NotFoundError):
            await usecase.commit_production("missing", 1)


class TestShipments:
    """출고/입고 테스트"""

    @pytest.mark.asyncio
    async def test_create_shipment_merges_items(self, usecase, repository):
        batch = await usecase.create_shipment(USER, [("p1", 2), ("p1", 3), ("p2", 1)], date(2024, 3, 1))

        assert batch.status == BatchStatus.IN_TRANSIT
        assert {item.product_id: item.quantity for item in batch.items} == {"p1": 5, "p2": 1}
        p1 = await repository.get_product("p1")
        assert (p1.stock_factory, p1.stock_scheduled) == (5, 5)

    @pytest.mark.asyncio
    async def test_insufficient_stock_changes_nothing(self, usecase, repository):
        """한 품목이라도 부족하면 전체 취소"""
        with pytest.raises(ValidationError) as exc_info:
            await usecase.create_shipment(USER, [("p1", 2), ("p2", 4)])

        assert "상품 B" in exc_info.value.message
        assert (await repository.get_product("p1")).stock_factory == 10
        assert await repository.list_batches(USER) == []

    @pytest.mark.asyncio
    async def test_empty_shipment(self, usecase):
        with pytest.raises(ValidationError):
            await usecase.create_shipment(USER, [])

    @pytest.mark.asyncio
    async def test_receive_shipment_once(self, usecase, repository, clock):
        batch = await usecase.create_shipment(USER, [("p1", 4)])

        received = await usecase.receive_shipment(USER, batch.id)
        again = await usecase.receive_shipment(USER, batch.id)

        p1 = await repository.get_product("p1")
        assert received.status == BatchStatus.RECEIVED
        assert received.received_date == clock.today()
        assert again.status == BatchStatus.RECEIVED
        assert (p1.stock_factory, p1.stock_scheduled, p1.stock_full) == (6, 0, 4)

    @pytest.mark.asyncio
    async def test_receive_other_users_batch(self, usecase):
        batch = await usecase.create_shipment(USER, [("p1", 1)])

        with pytest.raises(NotFoundError):
            await usecase.receive_shipment("someone-else", batch.id)

    @pytest.mark.asyncio
    async def test_batches_ordered_in_transit_first(self, usecase):
        old = await usecase.create_shipment(USER, [("p1", 1)], date(2024, 1, 1))
        newer = await usecase.create_shipment(USER, [("p1", 1)], date(2024, 2, 1))
        newest = await usecase.create_shipment(USER, [("p1", 1)], date(2024, 3, 1))
        await usecase.receive_shipment(USER, newest.id)

        batches = await usecase.list_batches(USER)

        assert [batch.id for batch in batches] == [newer.id, old.id, newest.id]
