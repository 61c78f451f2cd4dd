"""FastAPI 애플리케이션 메인 파일 (헥사고날 아키텍처)"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, APIRouter
from fastapi.middleware.cors import CORSMiddleware

from fullstock.app.routes import health, marketplace, inventory
from fullstock.app.di import close_http_clients, get_engine
from fullstock.adapters.persistence.models import init_models
from fullstock.shared.config import get_settings
from fullstock.shared.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


def create_app(init_database: bool = True) -> FastAPI:
    """FastAPI 애플리케이션 생성"""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """애플리케이션 생명주기 관리"""
        logger.info("풀필먼트 재고 관리 시스템 시작")
        if not settings.is_marketplace_configured:
            logger.warning("마켓 클라이언트 ID가 없어 데모 모드로 동작합니다")

        if init_database:
            try:
                await init_models(get_engine())
            except Exception as e:
                logger.error(f"데이터베이스 초기화 실패: {e}")
                raise

        yield

        await close_http_clients()
        logger.info("풀필먼트 재고 관리 시스템 종료")

    app = FastAPI(
        title="풀필먼트 재고 관리 시스템",
        description="마켓 풀필먼트 재고 동기화 및 재고 소진 예측 API",
        version="1.0.0",
        lifespan=lifespan
    )

    # CORS 미들웨어
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # API 라우터 등록
    api_router = APIRouter(prefix="/api/v1")

    api_router.include_router(health.router, tags=["health"])
    api_router.include_router(marketplace.router, prefix="/marketplace", tags=["marketplace"])
    api_router.include_router(inventory.router, prefix="/inventory", tags=["inventory"])

    app.include_router(api_router)

    @app.get("/")
    async def root():
        """루트 엔드포인트"""
        return {
            "message": "풀필먼트 재고 관리 API 서버",
            "docs": "/docs",
            "health": "/api/v1/health"
        }

    return app


# 애플리케이션 인스턴스
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "fullstock.app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower()
    )
