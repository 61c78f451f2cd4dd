"""재고 서비스 파사드"""
from typing import List
from datetime import timedelta
import uuid

from fullstock.core.entities.batch import Batch
from fullstock.core.entities.product import Product
from fullstock.core.exceptions import NotFoundError, ValidationError
from fullstock.core.ports.clock_port import ClockPort
from fullstock.core.ports.credential_port import CredentialStorePort
from fullstock.core.ports.repo_port import ProductRepositoryPort
from fullstock.core.usecases.manage_stock import ManageStockUseCase
from fullstock.presentation.schemas.inventory import (
    BatchCreateRequest,
    BatchListResponse,
    BatchResponse,
    ProductCreateRequest,
    ProductListResponse,
    ProductResponse,
    RuptureListResponse,
    RuptureResponse
)
from fullstock.shared.config import Settings
from fullstock.shared.logging import get_logger

logger = get_logger(__name__)


class InventoryService:
    """재고 서비스 파사드"""

    def __init__(
        self,
        settings: Settings,
        repository: ProductRepositoryPort,
        manage_stock: ManageStockUseCase,
        credential_store: CredentialStorePort,
        clock: ClockPort
    ):
        self.settings = settings
        self.repository = repository
        self.manage_stock = manage_stock
        self.credential_store = credential_store
        self.clock = clock

    async def list_products(self, app_user_id: str) -> ProductListResponse:
        products = await self._load_products(app_user_id)
        return ProductListResponse(
            products=[ProductResponse(**product.to_dict()) for product in products],
            total=len(products)
        )

    async def create_product(self, app_user_id: str, request: ProductCreateRequest) -> ProductResponse:
        """수동 상품 등록 (SKU당 1개)"""
        if await self.repository.get_product_by_sku(app_user_id, request.sku):
            raise ValidationError(f"이미 등록된 SKU입니다: {request.sku}", field="sku", value=request.sku)

        product = Product(
            id=str(uuid.uuid4()),
            user_id=app_user_id,
            **request.model_dump()
        )
        created = await self.repository.create_products(app_user_id, [product])
        return ProductResponse(**created[0].to_dict())

    async def commit_production(self, app_user_id: str, product_id: str, amount: int) -> ProductResponse:
        await self._ensure_owner(app_user_id, product_id)
        product = await self.manage_stock.commit_production(product_id, amount)
        return ProductResponse(**product.to_dict())

    async def create_batch(self, app_user_id: str, request: BatchCreateRequest) -> BatchResponse:
        batch = await self.manage_stock.create_shipment(
            app_user_id,
            [(item.product_id, item.quantity) for item in request.items],
            request.sent_date
        )
        return self._to_batch_response(batch)

    async def list_batches(self, app_user_id: str) -> BatchListResponse:
        batches = await self.manage_stock.list_batches(app_user_id)
        return BatchListResponse(
            batches=[self._to_batch_response(batch) for batch in batches],
            total=len(batches)
        )

    async def receive_batch(self, app_user_id: str, batch_id: str) -> BatchResponse:
        batch = await self.manage_stock.receive_shipment(app_user_id, batch_id)
        return self._to_batch_response(batch)

    async def list_ruptures(self, app_user_id: str) -> RuptureListResponse:
        """소진 예측 (남은 일수 오름차순)"""
        credential = await self.credential_store.get(app_user_id)
        threshold = credential.alert_threshold_days
        products = await self._load_products(app_user_id)

        ruptures = []
        for product in products:
            prediction = product.predict_rupture()
            ruptures.append(RuptureResponse(
                product_id=product.id,
                sku=product.sku,
                title=product.title,
                stock_full=product.stock_full,
                avg_daily_sales=product.avg_daily_sales,
                days_left=prediction.days_left,
                status=prediction.status.value,
                below_alert_threshold=prediction.days_left <= threshold
            ))

        ruptures.sort(key=lambda rupture: rupture.days_left)
        return RuptureListResponse(ruptures=ruptures, alert_threshold_days=threshold)

    async def _load_products(self, app_user_id: str) -> List[Product]:
        since = self.clock.today() - timedelta(days=self.settings.sales_window_days - 1)
        return await self.repository.list_products(app_user_id, since)

    async def _ensure_owner(self, app_user_id: str, product_id: str) -> None:
        product = await self.repository.get_product(product_id)
        if not product or (product.user_id is not None and product.user_id != app_user_id):
            raise NotFoundError(f"상품을 찾을 수 없습니다: {product_id}")

    def _to_batch_response(self, batch: Batch) -> BatchResponse:
        return BatchResponse(**batch.to_dict())
