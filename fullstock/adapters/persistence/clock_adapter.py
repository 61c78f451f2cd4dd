"""시간 어댑터"""
from datetime import datetime, date, timedelta, timezone

from fullstock.core.ports.clock_port import ClockPort


class ClockAdapter(ClockPort):
    """시간 어댑터 구현체"""

    def now(self) -> datetime:
        """현재 시간 반환 (UTC)"""
        return datetime.now(timezone.utc)

    def today(self) -> date:
        """오늘 날짜 반환"""
        return self.now().date()

    def days_ago(self, days: int) -> datetime:
        """현재 시간에서 일자 차감"""
        return self.now() - timedelta(days=days)
