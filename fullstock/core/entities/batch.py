"""풀필먼트 센터 출고 배치 엔티티"""
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional
from datetime import date
from enum import Enum


class BatchStatus(Enum):
    """배치 상태"""
    PREPARING = "PREPARING"
    IN_TRANSIT = "IN_TRANSIT"
    RECEIVED = "RECEIVED"
    CANCELLED = "CANCELLED"


@dataclass
class BatchItem:
    """배치 품목"""
    product_id: str
    product_title: str
    quantity: int


@dataclass
class Batch:
    """출고 배치"""
    id: str
    items: List[BatchItem]
    sent_date: date
    user_id: Optional[str] = None
    status: BatchStatus = BatchStatus.IN_TRANSIT
    received_date: Optional[date] = None

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_in_transit(self) -> bool:
        return self.status == BatchStatus.IN_TRANSIT

    def mark_received(self, received_date: date) -> None:
        self.status = BatchStatus.RECEIVED
        self.received_date = received_date

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'items': [item.__dict__ for item in self.items],
            'total_quantity': self.total_quantity,
            'status': self.status.value,
            'sent_date': self.sent_date.isoformat(),
            'received_date': self.received_date.isoformat() if self.received_date else None
        }
