"""마켓 연결/동기화 라우트"""
from fastapi import APIRouter, Depends, HTTPException, status

from fullstock.app.di import get_current_user_id, get_marketplace_service
from fullstock.core.exceptions import FullStockError, create_http_exception
from fullstock.presentation.schemas.marketplace import (
    AuthorizeRequest,
    AuthorizeResponse,
    CallbackRequest,
    ConnectionStatusResponse,
    ImportResponse,
    SettingsUpdateRequest,
    SyncResponse
)
from fullstock.services.marketplace_service import MarketplaceService
from fullstock.shared.logging import get_logger

router = APIRouter()
logger = get_logger(__name__)


def _unexpected(action: str, error: Exception) -> HTTPException:
    logger.error(f"{action} 중 오류: {error}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(error)
    )


@router.get("/status", response_model=ConnectionStatusResponse)
async def get_status(
    user_id: str = Depends(get_current_user_id),
    service: MarketplaceService = Depends(get_marketplace_service)
):
    """마켓 연결 상태"""
    return await service.get_status(user_id)


@router.post("/authorize", response_model=AuthorizeResponse)
async def start_authorization(
    request: AuthorizeRequest,
    user_id: str = Depends(get_current_user_id),
    service: MarketplaceService = Depends(get_marketplace_service)
):
    """인가 시작 (인가 URL 발급)"""
    try:
        return await service.start_authorization(user_id, request.origin)

    except FullStockError as e:
        raise create_http_exception(e)
    except Exception as e:
        raise _unexpected("인가 시작", e)


@router.post("/callback", response_model=ConnectionStatusResponse)
async def complete_authorization(
    request: CallbackRequest,
    user_id: str = Depends(get_current_user_id),
    service: MarketplaceService = Depends(get_marketplace_service)
):
    """인가 콜백 (코드 교환)"""
    try:
        return await service.complete_authorization(user_id, request.code, request.state)

    except FullStockError as e:
        raise create_http_exception(e)
    except Exception as e:
        raise _unexpected("인가 코드 교환", e)


@router.delete("/connection", response_model=ConnectionStatusResponse)
async def disconnect(
    user_id: str = Depends(get_current_user_id),
    service: MarketplaceService = Depends(get_marketplace_service)
):
    """마켓 연결 해제"""
    return await service.disconnect(user_id)


@router.put("/settings", response_model=ConnectionStatusResponse)
async def update_settings(
    request: SettingsUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    service: MarketplaceService = Depends(get_marketplace_service)
):
    """알림 기준 일수 변경"""
    return await service.update_alert_threshold(user_id, request.alert_threshold_days)


@router.post("/sync", response_model=SyncResponse)
async def sync_inventory(
    user_id: str = Depends(get_current_user_id),
    service: MarketplaceService = Depends(get_marketplace_service)
):
    """풀필먼트 재고/판매 동기화"""
    try:
        return await service.sync_inventory(user_id)

    except FullStockError as e:
        raise create_http_exception(e)
    except Exception as e:
        raise _unexpected("재고 동기화", e)


@router.post("/import", response_model=ImportResponse)
async def import_listings(
    user_id: str = Depends(get_current_user_id),
    service: MarketplaceService = Depends(get_marketplace_service)
):
    """활성 리스팅 가져오기"""
    try:
        return await service.import_listings(user_id)

    except FullStockError as e:
        raise create_http_exception(e)
    except Exception as e:
        raise _unexpected("리스팅 가져오기", e)
