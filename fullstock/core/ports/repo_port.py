"""저장소 포트 (인터페이스)"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional
from datetime import date

from fullstock.core.entities.product import Product
from fullstock.core.entities.batch import Batch, BatchStatus


class ProductRepositoryPort(ABC):
    """상품/판매/배치 저장소 인터페이스"""

    # Product 관련
    @abstractmethod
    async def list_products(self, user_id: str, sales_since: Optional[date] = None) -> List[Product]:
        """사용자 상품 목록 조회 (sales_since 이후 판매 이력 포함)"""
        pass

    @abstractmethod
    async def get_product(self, product_id: str) -> Optional[Product]:
        """상품 ID로 조회"""
        pass

    @abstractmethod
    async def get_product_by_sku(self, user_id: str, sku: str) -> Optional[Product]:
        """사용자 SKU로 조회"""
        pass

    @abstractmethod
    async def create_products(self, user_id: str, products: List[Product]) -> List[Product]:
        """상품 일괄 생성"""
        pass

    @abstractmethod
    async def update_stock(
        self,
        product_id: str,
        stock_factory: Optional[int] = None,
        stock_scheduled: Optional[int] = None,
        stock_full: Optional[int] = None
    ) -> None:
        """재고 필드 부분 업데이트"""
        pass

    # 판매 관련
    @abstractmethod
    async def record_daily_sales(self, product_id: str, sale_date: date, quantity: int) -> None:
        """일별 판매량 저장 (같은 날짜는 덮어쓰기)"""
        pass

    @abstractmethod
    async def save_sync_results(
        self,
        stock_full: Dict[str, int],
        daily_sales: Dict[str, Dict[date, int]]
    ) -> int:
        """동기화 결과 일괄 저장 (한 트랜잭션, 실패 시 전부 롤백)

        Returns:
            저장한 일별 판매 행 수
        """
        pass

    # Batch 관련
    @abstractmethod
    async def create_batch(self, user_id: str, batch: Batch) -> Batch:
        """배치 생성"""
        pass

    @abstractmethod
    async def get_batch(self, batch_id: str) -> Optional[Batch]:
        """배치 조회"""
        pass

    @abstractmethod
    async def list_batches(self, user_id: str) -> List[Batch]:
        """배치 목록 조회"""
        pass

    @abstractmethod
    async def update_batch_status(
        self,
        batch_id: str,
        status: BatchStatus,
        received_date: Optional[date] = None
    ) -> None:
        """배치 상태 업데이트"""
        pass
