"""마켓 연결/동기화 서비스 파사드"""
from typing import Dict, List, Optional
from datetime import date, timedelta
import random

from fullstock.core.entities.product import Product
from fullstock.core.ports.clock_port import ClockPort
from fullstock.core.ports.credential_port import CredentialStorePort
from fullstock.core.ports.repo_port import ProductRepositoryPort
from fullstock.core.usecases.authorize_account import PkceAuthorizer
from fullstock.core.usecases.import_listings import ImportListingsUseCase
from fullstock.core.usecases.sync_marketplace import SyncMarketplaceUseCase, SyncOutcome
from fullstock.presentation.schemas.marketplace import (
    AuthorizeResponse,
    ConnectionStatusResponse,
    ImportResponse,
    SyncResponse
)
from fullstock.shared.config import Settings
from fullstock.shared.logging import get_logger

logger = get_logger(__name__)

DEMO_MARKETPLACE_USER_ID = "DEMO"
DEMO_SALE_PROBABILITY = 0.4
DEMO_MAX_DAILY_SALES = 3


class MarketplaceService:
    """마켓 연결/동기화 서비스 파사드

    클라이언트 ID가 설정되지 않으면 데모 모드로 인가와 동기화를 시뮬레이션한다.
    """

    def __init__(
        self,
        settings: Settings,
        authorizer: PkceAuthorizer,
        credential_store: CredentialStorePort,
        sync_usecase: SyncMarketplaceUseCase,
        import_usecase: ImportListingsUseCase,
        repository: ProductRepositoryPort,
        clock: ClockPort,
        rng: Optional[random.Random] = None
    ):
        self.settings = settings
        self.authorizer = authorizer
        self.credential_store = credential_store
        self.sync_usecase = sync_usecase
        self.import_usecase = import_usecase
        self.repository = repository
        self.clock = clock
        self.rng = rng or random.Random()

    @property
    def demo_mode(self) -> bool:
        return not self.settings.is_marketplace_configured

    async def get_status(self, app_user_id: str) -> ConnectionStatusResponse:
        """마켓 연결 상태 조회"""
        credential = await self.credential_store.get(app_user_id)
        return ConnectionStatusResponse(
            connected=credential.is_connected,
            marketplace_user_id=credential.marketplace_user_id,
            alert_threshold_days=credential.alert_threshold_days,
            demo_mode=self.demo_mode
        )

    async def start_authorization(self, app_user_id: str, origin: Optional[str] = None) -> AuthorizeResponse:
        """인가 시작 (데모 모드면 즉시 연결)"""
        if self.demo_mode:
            await self.credential_store.set_tokens(
                app_user_id,
                DEMO_MARKETPLACE_USER_ID,
                self.settings.mock_access_token,
                None
            )
            logger.info(f"데모 모드 마켓 연결: user={app_user_id}")
            return AuthorizeResponse(demo_mode=True)

        request = await self.authorizer.build_authorization_url(origin, app_user_id)
        return AuthorizeResponse(
            authorization_url=request.authorization_url,
            state=request.state,
            redirect_uri=request.redirect_uri
        )

    async def complete_authorization(self, app_user_id: str, code: str, state: str) -> ConnectionStatusResponse:
        """인가 코드 교환 후 토큰 저장"""
        token_info = await self.authorizer.exchange_code(code, app_user_id, state)
        await self.credential_store.set_tokens(
            app_user_id,
            token_info.marketplace_user_id,
            token_info.access_token,
            token_info.refresh_token
        )
        return await self.get_status(app_user_id)

    async def disconnect(self, app_user_id: str) -> ConnectionStatusResponse:
        await self.credential_store.clear_connection(app_user_id)
        return await self.get_status(app_user_id)

    async def update_alert_threshold(self, app_user_id: str, days: int) -> ConnectionStatusResponse:
        await self.credential_store.set_alert_threshold(app_user_id, days)
        return await self.get_status(app_user_id)

    async def sync_inventory(self, app_user_id: str) -> SyncResponse:
        """재고/판매 동기화 (실패 시 예외 전파, 저장된 상태는 그대로)"""
        products = await self.repository.list_products(app_user_id, self._sales_since())

        if self.demo_mode:
            return await self._simulate_sync(products)

        outcome = await self.sync_usecase.execute(app_user_id, products)
        stock_full = self._changed_stock(products, outcome.products)
        sales_days = await self.repository.save_sync_results(stock_full, self._window_sales(outcome))

        run = outcome.run
        return SyncResponse(
            message=f"동기화 완료: {len(stock_full)}개 상품 재고 변경",
            products_updated=len(stock_full),
            sales_days_recorded=sales_days,
            refreshed=run.refreshed if run else False,
            run_id=run.id if run else None,
            path=[state.value for state, _ in run.transitions] if run else []
        )

    async def import_listings(self, app_user_id: str) -> ImportResponse:
        created = await self.import_usecase.execute(app_user_id)
        message = f"{created}개 상품을 가져왔습니다" if created else "가져올 새 상품이 없습니다"
        return ImportResponse(created=created, message=message)

    def _changed_stock(self, before: List[Product], after: List[Product]) -> Dict[str, int]:
        return {
            new.id: new.stock_full
            for old, new in zip(before, after)
            if old.stock_full != new.stock_full
        }

    def _window_sales(self, outcome: SyncOutcome) -> Dict[str, Dict[date, int]]:
        """상품별 판매 윈도우 전체 일자 (주문 없는 날은 0)"""
        since = self._sales_since()
        window = [since + timedelta(days=offset) for offset in range(self.settings.sales_window_days)]

        daily_sales = {}
        for product in outcome.products:
            per_day = outcome.sales.get(product.sku)
            if per_day is None and product.marketplace_item_id:
                per_day = outcome.sales.get(product.marketplace_item_id)

            rows = {day: 0 for day in window}
            for day, quantity in (per_day or {}).items():
                rows[date.fromisoformat(day)] = quantity
            daily_sales[product.id] = rows
        return daily_sales

    async def _simulate_sync(self, products: List[Product]) -> SyncResponse:
        """데모 모드: 상품별 하루치 판매 시뮬레이션"""
        today = self.clock.today()
        stock_full = {}
        daily_sales = {}

        for product in products:
            sold = 0
            if self.rng.random() < DEMO_SALE_PROBABILITY:
                sold = self.rng.randint(0, DEMO_MAX_DAILY_SALES)

            daily_sales[product.id] = {today: sold}
            remaining = max(0, product.stock_full - sold)
            if remaining != product.stock_full:
                stock_full[product.id] = remaining

        recorded = await self.repository.save_sync_results(stock_full, daily_sales)
        logger.info(f"데모 동기화 완료: 상품 {len(products)}개, 재고 변경 {len(stock_full)}개")
        return SyncResponse(
            message="데모 모드: 판매 데이터를 시뮬레이션했습니다",
            products_updated=len(stock_full),
            sales_days_recorded=recorded,
            demo_mode=True
        )

    def _sales_since(self) -> date:
        return self.clock.today() - timedelta(days=self.settings.sales_window_days - 1)
