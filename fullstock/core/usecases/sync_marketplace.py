"""마켓 재고/판매 동기화 유즈케이스"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import asyncio

from fullstock.core.entities.product import Product
from fullstock.core.entities.sync_run import SyncRun, SyncType
from fullstock.core.exceptions import UnauthorizedError
from fullstock.core.ports.marketplace_port import MarketplacePort, RemoteItem, SalesMap
from fullstock.core.usecases.marketplace_session import MarketplaceSession
from fullstock.shared.logging import get_logger

logger = get_logger(__name__)


@dataclass
class SyncOutcome:
    """동기화 결과 (병합된 전체 상품 목록)"""
    products: List[Product]
    sales: SalesMap = field(default_factory=dict)
    run: Optional[SyncRun] = None
    updated_count: int = 0


def find_remote(product: Product, by_item_id: Dict[str, RemoteItem], by_sku: Dict[str, RemoteItem]) -> Optional[RemoteItem]:
    """마켓 상품 ID가 있으면 ID로, 없으면 SKU로 매칭"""
    if product.marketplace_item_id:
        return by_item_id.get(product.marketplace_item_id)
    return by_sku.get(product.sku)


def index_remote(remote: List[RemoteItem]) -> Tuple[Dict[str, RemoteItem], Dict[str, RemoteItem]]:
    by_item_id = {item.marketplace_item_id: item for item in remote}
    by_sku = {item.sku: item for item in remote}
    return by_item_id, by_sku


def merge_remote_stock(products: List[Product], remote: List[RemoteItem]) -> List[Product]:
    """원격 재고를 로컬 상품에 병합 (stock_full만 교체, 매칭 없으면 그대로)"""
    by_item_id, by_sku = index_remote(remote)

    merged = []
    for product in products:
        match = find_remote(product, by_item_id, by_sku)
        merged.append(product.with_stock_full(match.stock_full) if match else product)
    return merged


class SyncMarketplaceUseCase:
    """풀필먼트 재고 동기화 유즈케이스"""

    def __init__(self, marketplace_port: MarketplacePort, session: MarketplaceSession):
        self.marketplace_port = marketplace_port
        self.session = session

    async def execute(self, app_user_id: str, products: List[Product]) -> SyncOutcome:
        """동기화 실행 (실패 시 예외, 호출자는 기존 상태 유지)"""
        run = self.session.new_run(SyncType.STOCK_SYNC, app_user_id)
        credential = await self.session.load_connected(run)

        async def fetch(access_token: str, marketplace_user_id: str) -> Tuple[List[RemoteItem], SalesMap]:
            results = await asyncio.gather(
                self.marketplace_port.fetch_fulfillment_stock(access_token, marketplace_user_id),
                self.marketplace_port.fetch_sales_history(access_token, marketplace_user_id),
                return_exceptions=True
            )
            # 어느 한쪽이라도 401이면 갱신 경로로
            for result in results:
                if isinstance(result, UnauthorizedError):
                    raise result
            for result in results:
                if isinstance(result, BaseException):
                    raise result
            return results[0], results[1]

        remote, sales = await self.session.execute(run, credential, fetch)

        merged = merge_remote_stock(products, remote)
        updated = sum(1 for before, after in zip(products, merged) if before.stock_full != after.stock_full)
        logger.info(
            f"재고 동기화 완료: user={app_user_id} 원격 {len(remote)}개, 변경 {updated}개, "
            f"판매 SKU {len(sales)}개"
        )

        return SyncOutcome(products=merged, sales=sales, run=run, updated_count=updated)
