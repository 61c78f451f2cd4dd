"""Mercado Livre 마켓 조회 어댑터"""
import httpx
import time
from typing import Dict, Any, List, Optional, TypeVar

from fullstock.core.exceptions import TransportError, UnauthorizedError
from fullstock.core.ports.clock_port import ClockPort
from fullstock.core.ports.marketplace_port import MarketplacePort, RemoteItem, SalesMap
from fullstock.adapters.persistence.clock_adapter import ClockAdapter
from fullstock.shared.config import Settings
from fullstock.shared.logging import get_logger, log_api_request

logger = get_logger(__name__)

T = TypeVar("T")

FULFILLMENT_LOGISTIC_TYPE = "fulfillment"


class MercadoLivreAdapter(MarketplacePort):
    """Mercado Livre API 어댑터

    401은 UnauthorizedError로 전파하고, 그 밖의 실패는 기본적으로 빈 결과로 처리한다
    (strict_marketplace_reads=True이면 TransportError 전파).
    """

    def __init__(
        self,
        settings: Settings,
        client: Optional[httpx.AsyncClient] = None,
        clock: Optional[ClockPort] = None
    ):
        self.settings = settings
        self.base_url = settings.ml_api_url.rstrip('/')
        self.batch_size = settings.items_batch_size
        self.client = client or httpx.AsyncClient(timeout=settings.request_timeout)
        self.clock = clock or ClockAdapter()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.client.aclose()

    async def fetch_fulfillment_stock(
        self,
        access_token: str,
        marketplace_user_id: str
    ) -> List[RemoteItem]:
        """풀필먼트 재고 조회"""
        try:
            item_ids = await self._search_item_ids(
                access_token, marketplace_user_id, {"logistic_type": FULFILLMENT_LOGISTIC_TYPE}
            )
            bodies = await self._multiget(access_token, item_ids)
            return [self._map_fulfillment_item(body) for body in bodies]

        except UnauthorizedError:
            raise
        except (TransportError, KeyError, TypeError, AttributeError) as e:
            return self._degrade("풀필먼트 재고 조회", e, [])

    async def fetch_active_listings(
        self,
        access_token: str,
        marketplace_user_id: str
    ) -> List[RemoteItem]:
        """활성 리스팅 조회"""
        try:
            item_ids = await self._search_item_ids(
                access_token, marketplace_user_id, {"status": "active"}
            )
            bodies = await self._multiget(access_token, item_ids)
            return [self._map_listing(body) for body in bodies]

        except UnauthorizedError:
            raise
        except (TransportError, KeyError, TypeError, AttributeError) as e:
            return self._degrade("활성 리스팅 조회", e, [])

    async def fetch_sales_history(
        self,
        access_token: str,
        marketplace_user_id: str
    ) -> SalesMap:
        """최근 주문을 SKU/일자별 판매량으로 집계"""
        date_from = self.clock.days_ago(self.settings.sales_window_days)

        try:
            data = await self._get(
                "/orders/search",
                access_token,
                {
                    "seller": marketplace_user_id,
                    "order.date_created.from": date_from.strftime("%Y-%m-%dT%H:%M:%S.000-00:00")
                }
            )

            sales: SalesMap = {}
            for order in data.get("results") or []:
                day = str(order["date_created"]).split("T")[0]
                for line in order.get("order_items") or []:
                    item = line.get("item") or {}
                    sku = item.get("seller_custom_field") or item["id"]
                    per_day = sales.setdefault(sku, {})
                    per_day[day] = per_day.get(day, 0) + int(line.get("quantity") or 0)

            return sales

        except UnauthorizedError:
            raise
        except (TransportError, KeyError, TypeError, AttributeError, ValueError) as e:
            return self._degrade("판매 이력 조회", e, {})

    async def _search_item_ids(
        self,
        access_token: str,
        marketplace_user_id: str,
        filters: Dict[str, str]
    ) -> List[str]:
        """셀러 상품 ID 검색 (첫 페이지만)"""
        data = await self._get(f"/users/{marketplace_user_id}/items/search", access_token, filters)
        item_ids = list(data.get("results") or [])

        total = (data.get("paging") or {}).get("total")
        if total and total > len(item_ids):
            logger.info(f"검색 결과 첫 페이지만 사용: {len(item_ids)}/{total}")

        return item_ids

    async def _multiget(self, access_token: str, item_ids: List[str]) -> List[Dict[str, Any]]:
        """상품 상세 일괄 조회 (batch_size 단위로 분할)"""
        bodies: List[Dict[str, Any]] = []

        for start in range(0, len(item_ids), self.batch_size):
            batch = item_ids[start:start + self.batch_size]
            entries = await self._get("/items", access_token, {"ids": ",".join(batch)})

            for entry in entries or []:
                if entry.get("code") != 200:
                    logger.warning(f"상품 상세 조회 실패 항목 건너뜀: {entry.get('code')}")
                    continue
                bodies.append(entry["body"])

        return bodies

    async def _get(self, path: str, access_token: str, params: Dict[str, str]) -> Any:
        """GET 요청 (401 -> UnauthorizedError)"""
        started = time.monotonic()
        try:
            response = await self.client.get(
                f"{self.base_url}{path}",
                params={**params, "access_token": access_token}
            )
        except httpx.RequestError as e:
            raise TransportError(f"마켓 API 요청 실패: {e}", endpoint=path)

        log_api_request(logger, "GET", path, response.status_code, time.monotonic() - started)

        if response.status_code == 401:
            raise UnauthorizedError(endpoint=path)

        if not response.is_success:
            raise TransportError(
                f"마켓 API 오류: {response.status_code}",
                endpoint=path,
                status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError:
            raise TransportError("마켓 API 응답을 해석할 수 없습니다", endpoint=path,
                                 status_code=response.status_code)

    def _map_fulfillment_item(self, body: Dict[str, Any]) -> RemoteItem:
        return RemoteItem(
            marketplace_item_id=body["id"],
            title=body.get("title") or "",
            sku=body.get("seller_custom_field") or body["id"],
            stock_full=int(body.get("available_quantity") or 0),
            permalink=body.get("permalink"),
            thumbnail=body.get("thumbnail")
        )

    def _map_listing(self, body: Dict[str, Any]) -> RemoteItem:
        shipping = body.get("shipping") or {}
        is_fulfillment = shipping.get("logistic_type") == FULFILLMENT_LOGISTIC_TYPE

        return RemoteItem(
            marketplace_item_id=body["id"],
            title=body.get("title") or "",
            sku=body.get("seller_custom_field") or body["id"],
            stock_full=int(body.get("available_quantity") or 0) if is_fulfillment else 0,
            permalink=body.get("permalink"),
            thumbnail=body.get("thumbnail")
        )

    def _degrade(self, operation: str, error: Exception, empty: T) -> T:
        """인증 외 실패 처리"""
        if self.settings.strict_marketplace_reads:
            if isinstance(error, TransportError):
                raise error
            raise TransportError(f"{operation} 응답 형식 오류: {error}")

        logger.warning(f"{operation} 실패, 빈 결과로 처리: {error}")
        return empty
