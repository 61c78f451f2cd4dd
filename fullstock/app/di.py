"""의존성 주입 설정"""
from functools import lru_cache
from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from fullstock.core.ports.clock_port import ClockPort
from fullstock.core.ports.credential_port import CredentialStorePort, VerifierStorePort
from fullstock.core.ports.marketplace_port import MarketplacePort
from fullstock.core.ports.oauth_port import OAuthPort, TokenRefresherPort
from fullstock.core.ports.repo_port import ProductRepositoryPort
from fullstock.core.usecases.authorize_account import PkceAuthorizer
from fullstock.core.usecases.import_listings import ImportListingsUseCase
from fullstock.core.usecases.manage_stock import ManageStockUseCase
from fullstock.core.usecases.marketplace_session import MarketplaceSession
from fullstock.core.usecases.sync_marketplace import SyncMarketplaceUseCase
from fullstock.services.inventory_service import InventoryService
from fullstock.services.marketplace_service import MarketplaceService
from fullstock.shared.config import Settings, get_settings
from fullstock.shared.logging import get_logger

logger = get_logger(__name__)


# 현재 앱 사용자 (로그인은 외부 담당)
def get_current_user_id(x_user_id: str = Header(..., alias="X-User-Id", min_length=1)) -> str:
    return x_user_id


# 데이터베이스 (프로세스당 1개)
@lru_cache()
def get_engine() -> AsyncEngine:
    from fullstock.adapters.persistence.models import create_engine_from_settings
    return create_engine_from_settings(get_settings())


@lru_cache()
def get_session_factory() -> async_sessionmaker:
    from fullstock.adapters.persistence.models import create_session_factory
    return create_session_factory(get_engine())


# 포트 구현체
@lru_cache()
def get_verifier_store() -> VerifierStorePort:
    """PKCE 세션 저장소 (요청 간 공유)"""
    from fullstock.adapters.auth.verifier_store import InMemoryVerifierStore
    return InMemoryVerifierStore()


@lru_cache()
def get_oauth_port() -> OAuthPort:
    """토큰 엔드포인트 포트 구현체"""
    from fullstock.adapters.markets.mercadolivre_oauth import MercadoLivreOAuthAdapter
    return MercadoLivreOAuthAdapter(get_settings())


@lru_cache()
def get_marketplace_port() -> MarketplacePort:
    """마켓 조회 포트 구현체"""
    from fullstock.adapters.markets.mercadolivre_adapter import MercadoLivreAdapter
    return MercadoLivreAdapter(get_settings(), clock=get_clock())


@lru_cache()
def get_refresh_coordinator() -> TokenRefresherPort:
    """사용자별 토큰 갱신 단일 비행 조정기"""
    from fullstock.adapters.auth.refresh_coordinator import RefreshCoordinator
    return RefreshCoordinator(get_oauth_port())


def get_clock() -> ClockPort:
    """클록 포트 구현체"""
    from fullstock.adapters.persistence.clock_adapter import ClockAdapter
    return ClockAdapter()


def get_credential_store(
    session_factory: async_sessionmaker = Depends(get_session_factory),
    settings: Settings = Depends(get_settings)
) -> CredentialStorePort:
    from fullstock.adapters.persistence.repositories import SqlCredentialStore
    return SqlCredentialStore(session_factory, settings.default_alert_threshold_days)


def get_repository(session_factory: async_sessionmaker = Depends(get_session_factory)) -> ProductRepositoryPort:
    from fullstock.adapters.persistence.repositories import SqlProductRepository
    return SqlProductRepository(session_factory)


async def close_http_clients() -> None:
    """외부 API 클라이언트 종료"""
    if get_oauth_port.cache_info().currsize:
        await get_oauth_port().client.aclose()
    if get_marketplace_port.cache_info().currsize:
        await get_marketplace_port().client.aclose()


# 유즈케이스 팩토리
def get_authorizer(
    settings: Settings = Depends(get_settings),
    oauth_port: OAuthPort = Depends(get_oauth_port),
    verifier_store: VerifierStorePort = Depends(get_verifier_store)
) -> PkceAuthorizer:
    """PKCE 인가 유즈케이스"""
    return PkceAuthorizer(settings, oauth_port, verifier_store)


def get_marketplace_session(
    settings: Settings = Depends(get_settings),
    credential_store: CredentialStorePort = Depends(get_credential_store),
    refresh_coordinator: TokenRefresherPort = Depends(get_refresh_coordinator)
) -> MarketplaceSession:
    return MarketplaceSession(settings, credential_store, refresh_coordinator)


def get_sync_usecase(
    marketplace_port: MarketplacePort = Depends(get_marketplace_port),
    session: MarketplaceSession = Depends(get_marketplace_session)
) -> SyncMarketplaceUseCase:
    """재고 동기화 유즈케이스"""
    return SyncMarketplaceUseCase(marketplace_port, session)


def get_import_usecase(
    marketplace_port: MarketplacePort = Depends(get_marketplace_port),
    repository: ProductRepositoryPort = Depends(get_repository),
    session: MarketplaceSession = Depends(get_marketplace_session)
) -> ImportListingsUseCase:
    """리스팅 가져오기 유즈케이스"""
    return ImportListingsUseCase(marketplace_port, repository, session)


def get_manage_stock_usecase(
    repository: ProductRepositoryPort = Depends(get_repository),
    clock: ClockPort = Depends(get_clock)
) -> ManageStockUseCase:
    """재고 이동 유즈케이스"""
    return ManageStockUseCase(repository, clock)


# 서비스 파사드
def get_marketplace_service(
    settings: Settings = Depends(get_settings),
    authorizer: PkceAuthorizer = Depends(get_authorizer),
    credential_store: CredentialStorePort = Depends(get_credential_store),
    sync_usecase: SyncMarketplaceUseCase = Depends(get_sync_usecase),
    import_usecase: ImportListingsUseCase = Depends(get_import_usecase),
    repository: ProductRepositoryPort = Depends(get_repository),
    clock: ClockPort = Depends(get_clock)
) -> MarketplaceService:
    """마켓 서비스 파사드"""
    return MarketplaceService(
        settings=settings,
        authorizer=authorizer,
        credential_store=credential_store,
        sync_usecase=sync_usecase,
        import_usecase=import_usecase,
        repository=repository,
        clock=clock
    )


def get_inventory_service(
    settings: Settings = Depends(get_settings),
    repository: ProductRepositoryPort = Depends(get_repository),
    manage_stock: ManageStockUseCase = Depends(get_manage_stock_usecase),
    credential_store: CredentialStorePort = Depends(get_credential_store),
    clock: ClockPort = Depends(get_clock)
) -> InventoryService:
    """재고 서비스 파사드"""
    return InventoryService(
        settings=settings,
        repository=repository,
        manage_stock=manage_stock,
        credential_store=credential_store,
        clock=clock
    )
