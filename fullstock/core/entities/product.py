"""상품 도메인 엔티티"""
from dataclasses import dataclass, field, replace
from typing import List, Dict, Any, Optional
from datetime import date
from enum import Enum

from fullstock.core.exceptions import ValidationError

NO_SALES_DAYS_LEFT = 999


class RuptureStatus(Enum):
    """재고 소진 위험도"""
    CRITICAL = "CRITICAL"
    WARNING = "WARNING"
    HEALTHY = "HEALTHY"


@dataclass(frozen=True)
class RupturePrediction:
    """재고 소진(루프처) 예측"""
    days_left: int
    status: RuptureStatus

    @classmethod
    def calculate(cls, stock_full: int, avg_daily_sales: float) -> "RupturePrediction":
        if avg_daily_sales <= 0:
            return cls(NO_SALES_DAYS_LEFT, RuptureStatus.HEALTHY)

        days_left = int(stock_full // avg_daily_sales)
        if days_left <= 5:
            return cls(days_left, RuptureStatus.CRITICAL)
        if days_left <= 15:
            return cls(days_left, RuptureStatus.WARNING)
        return cls(days_left, RuptureStatus.HEALTHY)


@dataclass(frozen=True)
class Sale:
    """일별 판매 기록"""
    date: date
    quantity: int


@dataclass
class Product:
    """상품 도메인 엔티티 (SKU당 1개)"""
    id: str
    sku: str
    title: str
    user_id: Optional[str] = None
    image_url: Optional[str] = None
    cost_per_unit: float = 0.0
    stock_factory: int = 0
    stock_scheduled: int = 0
    stock_full: int = 0
    marketplace_item_id: Optional[str] = None
    sales_history: List[Sale] = field(default_factory=list)

    def __post_init__(self):
        for name in ("stock_factory", "stock_scheduled", "stock_full"):
            if getattr(self, name) < 0:
                raise ValidationError(f"재고는 음수가 될 수 없습니다: {name}", field=name, value=getattr(self, name))

    @property
    def avg_daily_sales(self) -> float:
        """일평균 판매량"""
        if not self.sales_history:
            return 0.0
        total = sum(sale.quantity for sale in self.sales_history)
        return total / len(self.sales_history)

    @property
    def total_stock(self) -> int:
        return self.stock_factory + self.stock_scheduled + self.stock_full

    def predict_rupture(self) -> RupturePrediction:
        return RupturePrediction.calculate(self.stock_full, self.avg_daily_sales)

    def with_stock_full(self, stock_full: int) -> "Product":
        """풀필먼트 재고만 교체한 복사본"""
        return replace(self, stock_full=stock_full)

    def commit_production(self, amount: int) -> None:
        """공장 생산 등록"""
        if amount <= 0:
            raise ValidationError("생산 수량은 0보다 커야 합니다", field="amount", value=amount)
        self.stock_factory += amount

    def dispatch(self, quantity: int) -> None:
        """공장 -> 운송 중"""
        if quantity > self.stock_factory:
            raise ValidationError(
                f"공장 재고 부족: {self.title} (보유 {self.stock_factory}, 요청 {quantity})",
                field="quantity",
                value=quantity
            )
        self.stock_factory -= quantity
        self.stock_scheduled += quantity

    def receive(self, quantity: int) -> None:
        """운송 중 -> 풀필먼트 센터"""
        self.stock_scheduled = max(0, self.stock_scheduled - quantity)
        self.stock_full += quantity

    def to_dict(self) -> Dict[str, Any]:
        """딕셔너리 변환 (직렬화용)"""
        rupture = self.predict_rupture()
        return {
            'id': self.id,
            'sku': self.sku,
            'title': self.title,
            'image_url': self.image_url,
            'cost_per_unit': self.cost_per_unit,
            'stock_factory': self.stock_factory,
            'stock_scheduled': self.stock_scheduled,
            'stock_full': self.stock_full,
            'marketplace_item_id': self.marketplace_item_id,
            'avg_daily_sales': self.avg_daily_sales,
            'days_left': rupture.days_left,
            'rupture_status': rupture.status.value,
            'sales_history': [
                {'date': sale.date.isoformat(), 'quantity': sale.quantity}
                for sale in self.sales_history
            ]
        }
