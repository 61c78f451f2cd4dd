"""재고 라우트"""
from fastapi import APIRouter, Depends, HTTPException, status

from fullstock.app.di import get_current_user_id, get_inventory_service
from fullstock.core.exceptions import FullStockError, create_http_exception
from fullstock.presentation.schemas.inventory import (
    BatchCreateRequest,
    BatchListResponse,
    BatchResponse,
    ProductCreateRequest,
    ProductListResponse,
    ProductResponse,
    ProductionRequest,
    RuptureListResponse
)
from fullstock.services.inventory_service import InventoryService
from fullstock.shared.logging import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.get("/products", response_model=ProductListResponse)
async def list_products(
    user_id: str = Depends(get_current_user_id),
    service: InventoryService = Depends(get_inventory_service)
):
    """상품 목록"""
    return await service.list_products(user_id)


@router.post("/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    request: ProductCreateRequest,
    user_id: str = Depends(get_current_user_id),
    service: InventoryService = Depends(get_inventory_service)
):
    """상품 등록"""
    try:
        return await service.create_product(user_id, request)

    except FullStockError as e:
        raise create_http_exception(e)


@router.post("/products/{product_id}/production", response_model=ProductResponse)
async def commit_production(
    product_id: str,
    request: ProductionRequest,
    user_id: str = Depends(get_current_user_id),
    service: InventoryService = Depends(get_inventory_service)
):
    """공장 생산 등록"""
    try:
        return await service.commit_production(user_id, product_id, request.amount)

    except FullStockError as e:
        raise create_http_exception(e)


@router.get("/batches", response_model=BatchListResponse)
async def list_batches(
    user_id: str = Depends(get_current_user_id),
    service: InventoryService = Depends(get_inventory_service)
):
    """출고 배치 목록"""
    return await service.list_batches(user_id)


@router.post("/batches", response_model=BatchResponse, status_code=status.HTTP_201_CREATED)
async def create_batch(
    request: BatchCreateRequest,
    user_id: str = Depends(get_current_user_id),
    service: InventoryService = Depends(get_inventory_service)
):
    """출고 배치 생성"""
    try:
        return await service.create_batch(user_id, request)

    except FullStockError as e:
        raise create_http_exception(e)
    except Exception as e:
        logger.error(f"배치 생성 중 오류: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )


@router.post("/batches/{batch_id}/receive", response_model=BatchResponse)
async def receive_batch(
    batch_id: str,
    user_id: str = Depends(get_current_user_id),
    service: InventoryService = Depends(get_inventory_service)
):
    """배치 입고 처리"""
    try:
        return await service.receive_batch(user_id, batch_id)

    except FullStockError as e:
        raise create_http_exception(e)


@router.get("/ruptures", response_model=RuptureListResponse)
async def list_ruptures(
    user_id: str = Depends(get_current_user_id),
    service: InventoryService = Depends(get_inventory_service)
):
    """재고 소진 예측"""
    return await service.list_ruptures(user_id)
