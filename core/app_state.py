"""
畫面狀態：store + reducer

AppState 是不可變的值，只能透過 Store.dispatch(event) 產生新的狀態。
reducer 是純函式，不碰合約也不碰時間

狀態橫幅（transaction status）：
- PENDING 沒有過期時間，直到下一個事件覆蓋
- SUCCESS / ERROR 帶有 expires_at，過期後讀取時視為隱藏
"""
from dataclasses import dataclass, field, replace
from typing import FrozenSet, Optional, Tuple
import threading

from models import ParticipantStatus, TransactionState
from schemas import MatchResult, Participant


@dataclass(frozen=True)
class TransactionStatus:
    visible: bool = False
    status: TransactionState = TransactionState.PENDING
    message: str = ""
    expires_at: Optional[float] = None

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at


HIDDEN_STATUS = TransactionStatus()


@dataclass(frozen=True)
class AppState:
    account: str = ""
    loading: bool = True
    is_refreshing: bool = False
    in_flight: FrozenSet[str] = frozenset()
    participants: Tuple[Participant, ...] = ()
    matches: Tuple[MatchResult, ...] = ()
    transaction_status: TransactionStatus = HIDDEN_STATUS


# ============ Events ============

@dataclass(frozen=True)
class WalletConnected:
    account: str


@dataclass(frozen=True)
class WalletDisconnected:
    pass


@dataclass(frozen=True)
class RefreshStarted:
    pass


@dataclass(frozen=True)
class RefreshFinished:
    pass


@dataclass(frozen=True)
class ParticipantsLoaded:
    participants: Tuple[Participant, ...]


@dataclass(frozen=True)
class MatchesLoaded:
    matches: Tuple[MatchResult, ...]


@dataclass(frozen=True)
class ActionStarted:
    action: str


@dataclass(frozen=True)
class ActionFinished:
    action: str


@dataclass(frozen=True)
class StatusShown:
    status: TransactionState
    message: str
    expires_at: Optional[float] = None


@dataclass(frozen=True)
class StatusCleared:
    pass


@dataclass(frozen=True)
class ParticipantVerified:
    participant_id: str


@dataclass(frozen=True)
class MatchesGenerated:
    matches: Tuple[MatchResult, ...] = field(default_factory=tuple)


def reduce(state: AppState, event) -> AppState:
    """
    Reducer：根據事件產生新的狀態

    未知的事件直接回傳原狀態
    """
    if isinstance(event, WalletConnected):
        return replace(state, account=event.account)
    elif isinstance(event, WalletDisconnected):
        return replace(state, account="")
    elif isinstance(event, RefreshStarted):
        return replace(state, is_refreshing=True)
    elif isinstance(event, RefreshFinished):
        return replace(state, is_refreshing=False, loading=False)
    elif isinstance(event, ParticipantsLoaded):
        return replace(state, participants=tuple(event.participants))
    elif isinstance(event, MatchesLoaded):
        return replace(state, matches=tuple(event.matches))
    elif isinstance(event, ActionStarted):
        return replace(state, in_flight=state.in_flight | {event.action})
    elif isinstance(event, ActionFinished):
        return replace(state, in_flight=state.in_flight - {event.action})
    elif isinstance(event, StatusShown):
        return replace(state, transaction_status=TransactionStatus(
            visible=True,
            status=event.status,
            message=event.message,
            expires_at=event.expires_at,
        ))
    elif isinstance(event, StatusCleared):
        return replace(state, transaction_status=HIDDEN_STATUS)
    elif isinstance(event, ParticipantVerified):
        participants = tuple(
            p.model_copy(update={"status": ParticipantStatus.VERIFIED})
            if p.id == event.participant_id else p
            for p in state.participants
        )
        return replace(state, participants=participants)
    elif isinstance(event, MatchesGenerated):
        return replace(state, matches=tuple(event.matches) + state.matches)
    return state


class Store:
    """
    持有目前的 AppState

    dispatch 之間用 lock 保護，避免兩個 request 同時 replace 時遺失更新。
    lock 只保護單次狀態轉換，不會讓動作彼此排隊
    """

    def __init__(self, initial: Optional[AppState] = None):
        self._state = initial or AppState()
        self._lock = threading.Lock()

    @property
    def state(self) -> AppState:
        return self._state

    def dispatch(self, event) -> AppState:
        with self._lock:
            self._state = reduce(self._state, event)
            return self._state

    def try_begin(self, action: str) -> bool:
        """
        標記動作開始

        返回：
            False 如果同一個動作已經在執行中
        """
        with self._lock:
            if action in self._state.in_flight:
                return False
            self._state = reduce(self._state, ActionStarted(action))
            return True

    def try_begin_refresh(self) -> bool:
        with self._lock:
            if self._state.is_refreshing:
                return False
            self._state = reduce(self._state, RefreshStarted())
            return True

    def visible_status(self, now: float) -> TransactionStatus:
        """
        取得目前的狀態橫幅

        已過期的橫幅會在這裡被清除
        """
        with self._lock:
            current = self._state.transaction_status
            if current.visible and current.is_expired(now):
                self._state = reduce(self._state, StatusCleared())
            return self._state.transaction_status
