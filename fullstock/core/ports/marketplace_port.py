"""마켓플레이스 조회 포트 (인터페이스)"""
from abc import ABC, abstractmethod
from typing import List, Optional, Dict
from dataclasses import dataclass


@dataclass(frozen=True)
class RemoteItem:
    """마켓플레이스 리스팅 정보"""
    marketplace_item_id: str
    title: str
    sku: str
    stock_full: int
    permalink: Optional[str] = None
    thumbnail: Optional[str] = None


# SKU -> 날짜(YYYY-MM-DD) -> 판매 수량
SalesMap = Dict[str, Dict[str, int]]


class MarketplacePort(ABC):
    """마켓플레이스 조회 인터페이스

    모든 메서드는 토큰 거부(HTTP 401) 시 UnauthorizedError를 발생시킨다.
    """

    @abstractmethod
    async def fetch_fulfillment_stock(
        self,
        access_token: str,
        marketplace_user_id: str
    ) -> List[RemoteItem]:
        """풀필먼트 센터 재고 조회"""
        pass

    @abstractmethod
    async def fetch_active_listings(
        self,
        access_token: str,
        marketplace_user_id: str
    ) -> List[RemoteItem]:
        """활성 리스팅 조회 (풀필먼트가 아니면 stock_full=0)"""
        pass

    @abstractmethod
    async def fetch_sales_history(
        self,
        access_token: str,
        marketplace_user_id: str
    ) -> SalesMap:
        """최근 주문 기반 SKU/일자별 판매량 조회"""
        pass
