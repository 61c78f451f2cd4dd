"""마켓 동기화 실행 상태 머신"""
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Tuple
from datetime import datetime
from enum import Enum


class SyncType(Enum):
    """동기화 타입"""
    STOCK_SYNC = "stock_sync"    # 풀필먼트 재고/판매 동기화
    IMPORT = "import"            # 활성 리스팅 가져오기


class SyncState(Enum):
    """동기화 상태"""
    IDLE = "idle"
    FETCHING = "fetching"
    UNAUTHORIZED = "unauthorized"
    REFRESHING = "refreshing"
    RETRY_FETCHING = "retry_fetching"
    SUCCESS = "success"
    DISCONNECTED = "disconnected"
    FAILED = "failed"


# 재시도 후 UNAUTHORIZED로 돌아가는 전이는 없다 (갱신-재시도는 최대 1회)
ALLOWED_TRANSITIONS: Dict[SyncState, Tuple[SyncState, ...]] = {
    SyncState.IDLE: (SyncState.FETCHING, SyncState.DISCONNECTED),
    SyncState.FETCHING: (SyncState.SUCCESS, SyncState.UNAUTHORIZED, SyncState.FAILED),
    SyncState.UNAUTHORIZED: (SyncState.REFRESHING, SyncState.DISCONNECTED),
    SyncState.REFRESHING: (SyncState.RETRY_FETCHING, SyncState.DISCONNECTED, SyncState.FAILED),
    SyncState.RETRY_FETCHING: (SyncState.SUCCESS, SyncState.DISCONNECTED, SyncState.FAILED),
    SyncState.SUCCESS: (),
    SyncState.DISCONNECTED: (),
    SyncState.FAILED: (),
}

TERMINAL_STATES = (SyncState.SUCCESS, SyncState.DISCONNECTED, SyncState.FAILED)


class InvalidTransitionError(RuntimeError):
    """허용되지 않은 상태 전이"""
    pass


@dataclass
class SyncRun:
    """동기화/가져오기 1회 실행 이력"""
    id: str
    sync_type: SyncType
    app_user_id: str
    state: SyncState = SyncState.IDLE
    transitions: List[Tuple[SyncState, datetime]] = field(default_factory=list)
    refreshed: bool = False
    error_message: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def transition(self, new_state: SyncState) -> SyncState:
        """상태 전이 (허용 목록 검증)"""
        if new_state not in ALLOWED_TRANSITIONS[self.state]:
            raise InvalidTransitionError(f"{self.state.value} -> {new_state.value} 전이는 허용되지 않습니다")

        previous = self.state
        now = datetime.now()
        if previous == SyncState.IDLE:
            self.started_at = now
        if new_state == SyncState.REFRESHING:
            self.refreshed = True
        if new_state in TERMINAL_STATES:
            self.completed_at = now

        self.state = new_state
        self.transitions.append((new_state, now))
        return previous

    def fail(self, error_message: str, state: SyncState = SyncState.FAILED) -> SyncState:
        self.error_message = error_message
        return self.transition(state)

    @property
    def is_finished(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> Dict[str, Any]:
        """딕셔너리 변환 (직렬화용)"""
        return {
            'id': self.id,
            'sync_type': self.sync_type.value,
            'app_user_id': self.app_user_id,
            'state': self.state.value,
            'path': [state.value for state, _ in self.transitions],
            'refreshed': self.refreshed,
            'error_message': self.error_message,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
            'duration_seconds': self.duration_seconds
        }
