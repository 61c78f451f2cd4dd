"""재고 관련 DTO 스키마"""
from typing import List, Optional
from pydantic import BaseModel, Field
from datetime import date


class ProductCreateRequest(BaseModel):
    """상품 생성 요청"""
    sku: str = Field(..., min_length=1, max_length=100)
    title: str = Field(..., min_length=1, max_length=200)
    image_url: Optional[str] = None
    cost_per_unit: float = Field(0.0, ge=0.0)
    stock_factory: int = Field(0, ge=0)
    stock_scheduled: int = Field(0, ge=0)
    stock_full: int = Field(0, ge=0)
    marketplace_item_id: Optional[str] = None


class SaleResponse(BaseModel):
    date: date
    quantity: int


class ProductResponse(BaseModel):
    """상품 응답"""
    id: str
    sku: str
    title: str
    image_url: Optional[str] = None
    cost_per_unit: float
    stock_factory: int
    stock_scheduled: int
    stock_full: int
    marketplace_item_id: Optional[str] = None
    avg_daily_sales: float
    days_left: int
    rupture_status: str
    sales_history: List[SaleResponse] = []


class ProductListResponse(BaseModel):
    """상품 목록 응답"""
    products: List[ProductResponse]
    total: int


class ProductionRequest(BaseModel):
    """공장 생산 등록 요청 (수량 검증은 도메인에서)"""
    amount: int


class BatchItemRequest(BaseModel):
    product_id: str
    quantity: int = Field(..., gt=0)


class BatchCreateRequest(BaseModel):
    """출고 배치 생성 요청"""
    items: List[BatchItemRequest]
    sent_date: Optional[date] = None


class BatchItemResponse(BaseModel):
    product_id: str
    product_title: str
    quantity: int


class BatchResponse(BaseModel):
    """출고 배치 응답"""
    id: str
    items: List[BatchItemResponse]
    total_quantity: int
    status: str
    sent_date: date
    received_date: Optional[date] = None


class BatchListResponse(BaseModel):
    batches: List[BatchResponse]
    total: int


class RuptureResponse(BaseModel):
    """재고 소진 예측"""
    product_id: str
    sku: str
    title: str
    stock_full: int
    avg_daily_sales: float
    days_left: int
    status: str
    below_alert_threshold: bool


class RuptureListResponse(BaseModel):
    ruptures: List[RuptureResponse]
    alert_threshold_days: int
