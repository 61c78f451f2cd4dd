"""리포지토리 구현체"""
from typing import List, Optional, Dict
from datetime import date, datetime
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from fullstock.core.entities.batch import Batch, BatchItem, BatchStatus
from fullstock.core.entities.credential import Credential
from fullstock.core.entities.product import Product, Sale
from fullstock.core.exceptions import NotFoundError, ValidationError
from fullstock.core.ports.credential_port import CredentialStorePort
from fullstock.core.ports.repo_port import ProductRepositoryPort
from fullstock.adapters.persistence.models import (
    MarketplaceConnection,
    Product as ProductModel,
    SalesDaily as SalesDailyModel,
    Batch as BatchModel
)
from fullstock.shared.logging import get_logger

logger = get_logger(__name__)


class SqlCredentialStore(CredentialStorePort):
    """마켓 자격 증명 저장소 구현체"""

    def __init__(self, session_factory: async_sessionmaker, default_alert_threshold_days: int = 5):
        self.session_factory = session_factory
        self.default_alert_threshold_days = default_alert_threshold_days

    async def get(self, app_user_id: str) -> Credential:
        async with self.session_factory() as session:
            row = await session.get(MarketplaceConnection, app_user_id)
            if not row:
                return Credential(
                    app_user_id=app_user_id,
                    alert_threshold_days=self.default_alert_threshold_days
                )
            return self._map_connection(row)

    async def set_tokens(
        self,
        app_user_id: str,
        marketplace_user_id: Optional[str],
        access_token: str,
        refresh_token: Optional[str]
    ) -> None:
        async with self.session_factory() as session:
            try:
                row = await self._get_or_create(session, app_user_id)
                row.marketplace_user_id = marketplace_user_id
                row.access_token = access_token
                row.refresh_token = refresh_token
                row.updated_at = datetime.now()
                await session.commit()
                logger.info(f"마켓 토큰 저장 완료: user={app_user_id}")

            except Exception as e:
                await session.rollback()
                logger.error(f"마켓 토큰 저장 실패: {e}")
                raise

    async def clear_connection(self, app_user_id: str) -> None:
        async with self.session_factory() as session:
            try:
                row = await session.get(MarketplaceConnection, app_user_id)
                if not row:
                    return
                row.marketplace_user_id = None
                row.access_token = None
                row.refresh_token = None
                row.updated_at = datetime.now()
                await session.commit()
                logger.info(f"마켓 연결 해제 완료: user={app_user_id}")

            except Exception as e:
                await session.rollback()
                logger.error(f"마켓 연결 해제 실패: {e}")
                raise

    async def set_alert_threshold(self, app_user_id: str, days: int) -> None:
        async with self.session_factory() as session:
            try:
                row = await self._get_or_create(session, app_user_id)
                row.alert_threshold_days = days
                await session.commit()

            except Exception as e:
                await session.rollback()
                logger.error(f"알림 기준 저장 실패: {e}")
                raise

    async def _get_or_create(self, session, app_user_id: str) -> MarketplaceConnection:
        row = await session.get(MarketplaceConnection, app_user_id)
        if not row:
            row = MarketplaceConnection(
                app_user_id=app_user_id,
                alert_threshold_days=self.default_alert_threshold_days
            )
            session.add(row)
        return row

    def _map_connection(self, row: MarketplaceConnection) -> Credential:
        return Credential(
            app_user_id=row.app_user_id,
            marketplace_user_id=row.marketplace_user_id,
            access_token=row.access_token,
            refresh_token=row.refresh_token,
            alert_threshold_days=row.alert_threshold_days,
            updated_at=row.updated_at
        )


class SqlProductRepository(ProductRepositoryPort):
    """상품/판매/배치 리포지토리 구현체"""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def list_products(self, user_id: str, sales_since: Optional[date] = None) -> List[Product]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(ProductModel)
                .where(ProductModel.user_id == user_id)
                .order_by(ProductModel.created_at, ProductModel.id)
            )
            rows = result.scalars().all()
            sales = await self._load_sales(session, [row.id for row in rows], sales_since)
            return [self._map_product(row, sales.get(row.id, [])) for row in rows]

    async def get_product(self, product_id: str) -> Optional[Product]:
        async with self.session_factory() as session:
            row = await session.get(ProductModel, product_id)
            if not row:
                return None
            sales = await self._load_sales(session, [row.id])
            return self._map_product(row, sales.get(row.id, []))

    async def get_product_by_sku(self, user_id: str, sku: str) -> Optional[Product]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(ProductModel).where(ProductModel.user_id == user_id, ProductModel.sku == sku)
            )
            row = result.scalar_one_or_none()
            if not row:
                return None
            sales = await self._load_sales(session, [row.id])
            return self._map_product(row, sales.get(row.id, []))

    async def create_products(self, user_id: str, products: List[Product]) -> List[Product]:
        async with self.session_factory() as session:
            try:
                for product in products:
                    session.add(ProductModel(
                        id=product.id,
                        user_id=user_id,
                        sku=product.sku,
                        title=product.title,
                        image_url=product.image_url,
                        cost_per_unit=product.cost_per_unit,
                        stock_factory=product.stock_factory,
                        stock_scheduled=product.stock_scheduled,
                        stock_full=product.stock_full,
                        marketplace_item_id=product.marketplace_item_id
                    ))
                    product.user_id = user_id
                await session.commit()
                logger.info(f"상품 {len(products)}개 생성 완료: user={user_id}")
                return products

            except IntegrityError as e:
                await session.rollback()
                logger.error(f"상품 생성 실패 (SKU 중복): {e}")
                raise ValidationError("이미 등록된 SKU입니다", field="sku") from e

            except Exception as e:
                await session.rollback()
                logger.error(f"상품 생성 실패: {e}")
                raise

    async def update_stock(
        self,
        product_id: str,
        stock_factory: Optional[int] = None,
        stock_scheduled: Optional[int] = None,
        stock_full: Optional[int] = None
    ) -> None:
        async with self.session_factory() as session:
            try:
                row = await session.get(ProductModel, product_id)
                if not row:
                    logger.warning(f"재고 업데이트 대상 상품 없음: {product_id}")
                    return
                if stock_factory is not None:
                    row.stock_factory = stock_factory
                if stock_scheduled is not None:
                    row.stock_scheduled = stock_scheduled
                if stock_full is not None:
                    row.stock_full = stock_full
                await session.commit()

            except Exception as e:
                await session.rollback()
                logger.error(f"재고 업데이트 실패: {e}")
                raise

    async def record_daily_sales(self, product_id: str, sale_date: date, quantity: int) -> None:
        async with self.session_factory() as session:
            try:
                result = await session.execute(
                    select(SalesDailyModel).where(
                        SalesDailyModel.product_id == product_id,
                        SalesDailyModel.date == sale_date
                    )
                )
                row = result.scalar_one_or_none()
                if row:
                    row.quantity = quantity
                else:
                    session.add(SalesDailyModel(product_id=product_id, date=sale_date, quantity=quantity))
                await session.commit()

            except Exception as e:
                await session.rollback()
                logger.error(f"판매 기록 저장 실패: {e}")
                raise

    async def save_sync_results(
        self,
        stock_full: Dict[str, int],
        daily_sales: Dict[str, Dict[date, int]]
    ) -> int:
        async with self.session_factory() as session:
            try:
                for product_id, quantity in stock_full.items():
                    row = await session.get(ProductModel, product_id)
                    if not row:
                        raise NotFoundError(f"상품을 찾을 수 없습니다: {product_id}")
                    row.stock_full = quantity

                recorded = 0
                if daily_sales:
                    result = await session.execute(
                        select(SalesDailyModel).where(SalesDailyModel.product_id.in_(list(daily_sales)))
                    )
                    existing = {(row.product_id, row.date): row for row in result.scalars().all()}

                    for product_id, per_day in daily_sales.items():
                        for sale_date, quantity in per_day.items():
                            row = existing.get((product_id, sale_date))
                            if row:
                                row.quantity = quantity
                            else:
                                session.add(SalesDailyModel(product_id=product_id, date=sale_date, quantity=quantity))
                            recorded += 1

                await session.commit()
                logger.info(f"동기화 결과 저장 완료: 재고 {len(stock_full)}개, 판매 {recorded}행")
                return recorded

            except Exception as e:
                await session.rollback()
                logger.error(f"동기화 결과 저장 실패: {e}")
                raise

    async def create_batch(self, user_id: str, batch: Batch) -> Batch:
        async with self.session_factory() as session:
            try:
                session.add(BatchModel(
                    id=batch.id,
                    user_id=user_id,
                    items=[
                        {'product_id': item.product_id, 'product_title': item.product_title, 'quantity': item.quantity}
                        for item in batch.items
                    ],
                    status=batch.status.value,
                    sent_date=batch.sent_date,
                    received_date=batch.received_date
                ))
                await session.commit()
                batch.user_id = user_id
                logger.info(f"배치 생성 완료: {batch.id} ({batch.total_quantity}개)")
                return batch

            except Exception as e:
                await session.rollback()
                logger.error(f"배치 생성 실패: {e}")
                raise

    async def get_batch(self, batch_id: str) -> Optional[Batch]:
        async with self.session_factory() as session:
            row = await session.get(BatchModel, batch_id)
            return self._map_batch(row) if row else None

    async def list_batches(self, user_id: str) -> List[Batch]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(BatchModel)
                .where(BatchModel.user_id == user_id)
                .order_by(BatchModel.sent_date.desc(), BatchModel.created_at.desc())
            )
            return [self._map_batch(row) for row in result.scalars().all()]

    async def update_batch_status(
        self,
        batch_id: str,
        status: BatchStatus,
        received_date: Optional[date] = None
    ) -> None:
        async with self.session_factory() as session:
            try:
                row = await session.get(BatchModel, batch_id)
                if not row:
                    logger.warning(f"상태 업데이트 대상 배치 없음: {batch_id}")
                    return
                row.status = status.value
                if received_date is not None:
                    row.received_date = received_date
                await session.commit()

            except Exception as e:
                await session.rollback()
                logger.error(f"배치 상태 업데이트 실패: {e}")
                raise

    async def _load_sales(
        self,
        session,
        product_ids: List[str],
        sales_since: Optional[date] = None
    ) -> Dict[str, List[Sale]]:
        if not product_ids:
            return {}
        query = select(SalesDailyModel).where(SalesDailyModel.product_id.in_(product_ids))
        if sales_since is not None:
            query = query.where(SalesDailyModel.date >= sales_since)
        result = await session.execute(query.order_by(SalesDailyModel.date))
        sales: Dict[str, List[Sale]] = {}
        for row in result.scalars().all():
            sales.setdefault(row.product_id, []).append(Sale(date=row.date, quantity=row.quantity))
        return sales

    def _map_product(self, row: ProductModel, sales: List[Sale]) -> Product:
        return Product(
            id=row.id,
            sku=row.sku,
            title=row.title,
            user_id=row.user_id,
            image_url=row.image_url,
            cost_per_unit=row.cost_per_unit or 0.0,
            stock_factory=row.stock_factory or 0,
            stock_scheduled=row.stock_scheduled or 0,
            stock_full=row.stock_full or 0,
            marketplace_item_id=row.marketplace_item_id,
            sales_history=sales
        )

    def _map_batch(self, row: BatchModel) -> Batch:
        return Batch(
            id=row.id,
            items=[
                BatchItem(
                    product_id=item['product_id'],
                    product_title=item.get('product_title', ''),
                    quantity=int(item['quantity'])
                )
                for item in (row.items or [])
            ],
            sent_date=row.sent_date,
            user_id=row.user_id,
            status=BatchStatus(row.status),
            received_date=row.received_date
        )
