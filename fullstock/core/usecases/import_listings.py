"""활성 리스팅 가져오기 유즈케이스"""
from typing import List
import uuid

from fullstock.core.entities.product import Product
from fullstock.core.entities.sync_run import SyncType
from fullstock.core.ports.marketplace_port import MarketplacePort, RemoteItem
from fullstock.core.ports.repo_port import ProductRepositoryPort
from fullstock.core.usecases.marketplace_session import MarketplaceSession
from fullstock.shared.logging import get_logger

logger = get_logger(__name__)


def select_new_listings(products: List[Product], listings: List[RemoteItem]) -> List[RemoteItem]:
    """로컬에 SKU 또는 마켓 상품 ID가 이미 있는 리스팅 제외"""
    known_skus = {product.sku for product in products}
    known_item_ids = {product.marketplace_item_id for product in products if product.marketplace_item_id}

    selected = []
    for listing in listings:
        if listing.sku in known_skus or listing.marketplace_item_id in known_item_ids:
            continue
        # 같은 응답 안의 중복도 한 번만 생성
        known_skus.add(listing.sku)
        known_item_ids.add(listing.marketplace_item_id)
        selected.append(listing)
    return selected


class ImportListingsUseCase:
    """활성 리스팅 일괄 등록"""

    def __init__(
        self,
        marketplace_port: MarketplacePort,
        repository: ProductRepositoryPort,
        session: MarketplaceSession
    ):
        self.marketplace_port = marketplace_port
        self.repository = repository
        self.session = session

    async def execute(self, app_user_id: str) -> int:
        """새로 생성된 상품 수 반환 (새 항목이 없으면 0)"""
        run = self.session.new_run(SyncType.IMPORT, app_user_id)
        credential = await self.session.load_connected(run)
        products = await self.repository.list_products(app_user_id)

        listings = await self.session.execute(run, credential, self.marketplace_port.fetch_active_listings)

        new_listings = select_new_listings(products, listings)
        if not new_listings:
            logger.info(f"가져올 새 리스팅 없음: user={app_user_id} (활성 {len(listings)}개)")
            return 0

        created = await self.repository.create_products(
            app_user_id,
            [self._to_product(listing, app_user_id) for listing in new_listings]
        )

        logger.info(f"리스팅 가져오기 완료: user={app_user_id} 생성 {len(created)}개")
        return len(created)

    def _to_product(self, listing: RemoteItem, app_user_id: str) -> Product:
        return Product(
            id=str(uuid.uuid4()),
            sku=listing.sku,
            title=listing.title,
            user_id=app_user_id,
            image_url=listing.thumbnail,
            cost_per_unit=0.0,
            stock_factory=0,
            stock_scheduled=0,
            stock_full=listing.stock_full,
            marketplace_item_id=listing.marketplace_item_id
        )
