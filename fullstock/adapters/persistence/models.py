"""SQLAlchemy 모델 및 엔진 구성"""
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import Column, Integer, String, DateTime, Date, Float, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from typing import Optional

from fullstock.shared.config import Settings, get_settings
from fullstock.shared.logging import get_logger

logger = get_logger(__name__)


# 데이터베이스 모델 베이스
class Base(DeclarativeBase):
    pass


def create_engine_from_settings(settings: Optional[Settings] = None) -> AsyncEngine:
    """설정의 database_url로 비동기 엔진 생성"""
    settings = settings or get_settings()
    return create_async_engine(settings.database_url, echo=settings.log_level == "DEBUG")


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_models(engine: AsyncEngine) -> None:
    """테이블 생성"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("데이터베이스 테이블 준비 완료")


# 마켓 연결 테이블 (앱 사용자당 1행)
class MarketplaceConnection(Base):
    __tablename__ = "marketplace_connections"

    app_user_id = Column(String, primary_key=True)
    marketplace_user_id = Column(String)
    access_token = Column(String)
    refresh_token = Column(String)
    alert_threshold_days = Column(Integer, nullable=False, default=5)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


# 상품 테이블
class Product(Base):
    __tablename__ = "products"

    id = Column(String, primary_key=True)
    user_id = Column(String, index=True, nullable=False)
    sku = Column(String, nullable=False)
    title = Column(String, nullable=False)
    image_url = Column(String)
    cost_per_unit = Column(Float, nullable=False, default=0.0)
    stock_factory = Column(Integer, nullable=False, default=0)
    stock_scheduled = Column(Integer, nullable=False, default=0)
    stock_full = Column(Integer, nullable=False, default=0)
    marketplace_item_id = Column(String, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint('user_id', 'sku', name='uq_products_user_sku'),
    )


# 일별 판매 테이블
class SalesDaily(Base):
    __tablename__ = "sales_daily"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(String, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    quantity = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint('product_id', 'date', name='uq_sales_daily_product_date'),
    )


# 출고 배치 테이블
class Batch(Base):
    __tablename__ = "batches"

    id = Column(String, primary_key=True)
    user_id = Column(String, index=True, nullable=False)
    items = Column(JSON, nullable=False, default=list)
    status = Column(String, nullable=False)
    sent_date = Column(Date, nullable=False)
    received_date = Column(Date)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
