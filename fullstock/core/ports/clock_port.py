"""시간 포트 (인터페이스)"""
from abc import ABC, abstractmethod
from datetime import datetime, date


class ClockPort(ABC):
    """시간 인터페이스"""

    @abstractmethod
    def now(self) -> datetime:
        """현재 시간 반환 (UTC)"""
        pass

    @abstractmethod
    def today(self) -> date:
        """오늘 날짜 반환"""
        pass

    @abstractmethod
    def days_ago(self, days: int) -> datetime:
        """현재 시간에서 일자 차감"""
        pass
