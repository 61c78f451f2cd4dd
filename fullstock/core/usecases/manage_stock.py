"""공장 생산 및 출고 배치 유즈케이스"""
from typing import Dict, List, Optional, Tuple
from datetime import date
import uuid

from fullstock.core.entities.batch import Batch, BatchItem, BatchStatus
from fullstock.core.entities.product import Product
from fullstock.core.exceptions import NotFoundError, ValidationError
from fullstock.core.ports.clock_port import ClockPort
from fullstock.core.ports.repo_port import ProductRepositoryPort
from fullstock.shared.logging import get_logger

logger = get_logger(__name__)


def sort_batches(batches: List[Batch]) -> List[Batch]:
    """운송 중 배치 먼저, 그 다음 출고일 최신순"""
    by_date = sorted(batches, key=lambda batch: batch.sent_date, reverse=True)
    return sorted(by_date, key=lambda batch: 0 if batch.is_in_transit else 1)


class ManageStockUseCase:
    """재고 이동 (공장 -> 운송 중 -> 풀필먼트)"""

    def __init__(self, repository: ProductRepositoryPort, clock: ClockPort):
        self.repository = repository
        self.clock = clock

    async def commit_production(self, product_id: str, amount: int) -> Product:
        """공장 생산 등록"""
        product = await self._get_product(product_id)
        product.commit_production(amount)

        await self.repository.update_stock(product.id, stock_factory=product.stock_factory)
        logger.info(f"생산 등록: {product.sku} +{amount} (공장 재고 {product.stock_factory})")
        return product

    async def create_shipment(
        self,
        app_user_id: str,
        items: List[Tuple[str, int]],
        sent_date: Optional[date] = None
    ) -> Batch:
        """출고 배치 생성 (모든 품목 검증 후 재고 이동)"""
        if not items:
            raise ValidationError("배치에 품목이 최소 1개 필요합니다", field="items")

        quantities: Dict[str, int] = {}
        for product_id, quantity in items:
            if quantity <= 0:
                raise ValidationError("출고 수량은 0보다 커야 합니다", field="quantity", value=quantity)
            quantities[product_id] = quantities.get(product_id, 0) + quantity

        products = [await self._get_product(product_id) for product_id in quantities]
        for product in products:
            if product.user_id is not None and product.user_id != app_user_id:
                raise NotFoundError(f"상품을 찾을 수 없습니다: {product.id}")
            if quantities[product.id] > product.stock_factory:
                raise ValidationError(
                    f"공장 재고 부족: {product.title} (보유 {product.stock_factory}, 요청 {quantities[product.id]})",
                    field="quantity",
                    value=quantities[product.id]
                )

        batch = Batch(
            id=str(uuid.uuid4()),
            items=[
                BatchItem(product_id=product.id, product_title=product.title, quantity=quantities[product.id])
                for product in products
            ],
            sent_date=sent_date or self.clock.today(),
            user_id=app_user_id,
            status=BatchStatus.IN_TRANSIT
        )
        batch = await self.repository.create_batch(app_user_id, batch)

        for product in products:
            product.dispatch(quantities[product.id])
            await self.repository.update_stock(
                product.id,
                stock_factory=product.stock_factory,
                stock_scheduled=product.stock_scheduled
            )

        logger.info(f"출고 배치 생성: {batch.id} 품목 {len(batch.items)}개, 총 {batch.total_quantity}개")
        return batch

    async def receive_shipment(self, app_user_id: str, batch_id: str) -> Batch:
        """배치 입고 처리 (이미 입고된 배치는 그대로 반환)"""
        batch = await self.repository.get_batch(batch_id)
        if not batch or (batch.user_id is not None and batch.user_id != app_user_id):
            raise NotFoundError(f"배치를 찾을 수 없습니다: {batch_id}")

        if not batch.is_in_transit:
            logger.info(f"운송 중이 아닌 배치 입고 요청 무시: {batch_id} ({batch.status.value})")
            return batch

        for item in batch.items:
            product = await self.repository.get_product(item.product_id)
            if not product:
                logger.warning(f"입고 대상 상품 없음, 건너뜀: {item.product_id}")
                continue
            product.receive(item.quantity)
            await self.repository.update_stock(
                product.id,
                stock_scheduled=product.stock_scheduled,
                stock_full=product.stock_full
            )

        batch.mark_received(self.clock.today())
        await self.repository.update_batch_status(batch.id, batch.status, batch.received_date)

        logger.info(f"배치 입고 완료: {batch.id} 총 {batch.total_quantity}개")
        return batch

    async def list_batches(self, app_user_id: str) -> List[Batch]:
        return sort_batches(await self.repository.list_batches(app_user_id))

    async def _get_product(self, product_id: str) -> Product:
        product = await self.repository.get_product(product_id)
        if not product:
            raise NotFoundError(f"상품을 찾을 수 없습니다: {product_id}")
        return product
