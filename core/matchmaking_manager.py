"""
Matchmaking Manager：使用者動作的完整流程

職責：
1. 載入 / 重新整理資料（load_data / refresh）
2. 加入活動（join）
3. 驗證參與者（verify）
4. 執行配對（run_matching）
5. 檢查服務狀態（check_availability）

原則：
- 前置條件（錢包、必填欄位、已驗證人數、動作是否執行中）
  在呼叫合約之前檢查，失敗時直接拋出異常
- 呼叫合約之後的所有錯誤都在這裡接住，轉成狀態橫幅，不重試
- 每個動作同時只能有一個在執行（in_flight 旗標，不排隊）
"""
from contextlib import contextmanager
from typing import Callable, List, Optional
import logging
import random
import time

from database import Settings, get_settings
from models import ParticipantStatus, TransactionState
from schemas import MatchResult, Participant
from core.app_state import (
    ActionFinished,
    MatchesGenerated,
    MatchesLoaded,
    ParticipantVerified,
    ParticipantsLoaded,
    RefreshFinished,
    RefreshStarted,
    StatusShown,
    Store,
    TransactionStatus,
    WalletConnected,
    WalletDisconnected,
)
from core.contract import ContractProvider
from core.exceptions import (
    ActionInProgress,
    MissingJoinFields,
    NotEnoughVerifiedParticipants,
    WalletNotConnected,
)
from core.record_store import RecordStore
from services.fhe_service import encrypt_profile
from services.naming_service import generate_match_id, generate_participant_id
from services.pairing_service import (
    generate_compatibility_score,
    select_pairs,
    verified_participants,
)

logger = logging.getLogger(__name__)

USER_REJECTED_MARKER = "user rejected transaction"


def is_user_rejection(error: Exception) -> bool:
    """錢包端拒絕簽署時，錯誤訊息會包含 "user rejected transaction" """
    return USER_REJECTED_MARKER in str(error)


def _error_text(error: Exception) -> str:
    return str(error) or "Unknown error"


class MatchmakingManager:
    """使用者動作管理器"""

    JOIN = "join"
    VERIFY = "verify"
    MATCHING = "matching"
    REFRESH = "refresh"

    def __init__(
        self,
        store: Store,
        contracts: ContractProvider,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.contracts = contracts
        self.settings = settings or get_settings()
        self.clock = clock
        self.sleep = sleep
        self.rng = rng

    # ============ 狀態橫幅 ============

    def _show_pending(self, message: str) -> None:
        self.store.dispatch(StatusShown(TransactionState.PENDING, message))

    def _show_success(self, message: str) -> None:
        expires_at = self.clock() + self.settings.success_banner_seconds
        self.store.dispatch(StatusShown(TransactionState.SUCCESS, message, expires_at))

    def _show_error(self, message: str) -> None:
        expires_at = self.clock() + self.settings.error_banner_seconds
        self.store.dispatch(StatusShown(TransactionState.ERROR, message, expires_at))

    def current_status(self) -> TransactionStatus:
        return self.store.visible_status(self.clock())

    # ============ 前置條件 ============

    def _require_account(self) -> str:
        account = self.store.state.account
        if not account:
            raise WalletNotConnected()
        return account

    @contextmanager
    def _in_flight(self, action: str):
        if not self.store.try_begin(action):
            raise ActionInProgress(action)
        try:
            yield
        finally:
            self.store.dispatch(ActionFinished(action))

    # ============ 錢包 ============

    def connect_wallet(self, account: str) -> None:
        self.store.dispatch(WalletConnected(account))
        logger.info(f"Wallet connected: {account}")

    def disconnect_wallet(self) -> None:
        self.store.dispatch(WalletDisconnected())
        logger.info("Wallet disconnected")

    # ============ 載入 ============

    def load_data(self) -> None:
        """
        完整重新載入 participants 和 matches

        用於啟動時和動作完成後；不檢查是否已在重新整理中

        注意：
            join 完成後的重新載入會把 is_refreshing 設回 False，
            即使使用者觸發的 refresh 還沒結束（旗標不是計數器）
        """
        self.store.dispatch(RefreshStarted())
        self._reload()

    def refresh(self) -> None:
        """
        使用者觸發的重新整理

        異常：
            ActionInProgress: 已經在重新整理中
        """
        if not self.store.try_begin_refresh():
            raise ActionInProgress(self.REFRESH)
        self._reload()

    def _reload(self) -> None:
        """
        流程：
        1. 檢查合約是否可用（不可用時保留目前的資料）
        2. 載入 participants
        3. 載入 matches

        所有錯誤只記 log，不往上拋
        """
        try:
            records = RecordStore(self.contracts.read_only())

            if not records.is_available():
                logger.error("Contract is not available")
                return

            participants = records.load_participants()
            self.store.dispatch(ParticipantsLoaded(tuple(participants)))

            matches = records.load_matches()
            self.store.dispatch(MatchesLoaded(tuple(matches)))

            logger.info(f"Loaded {len(participants)} participants and {len(matches)} matches")
        except Exception as e:
            logger.error(f"Error loading data: {e}", exc_info=True)
        finally:
            self.store.dispatch(RefreshFinished())

    # ============ 加入 ============

    def join(self, preferences: str, encrypted_info: str) -> Optional[Participant]:
        """
        加入活動

        流程：
        1. 檢查錢包與必填欄位（失敗時不呼叫合約）
        2. 把欄位編碼成 FHE payload
        3. 寫入紀錄並更新 participant_keys
        4. 重新載入所有資料

        返回：
            新的 Participant；失敗時回傳 None（錯誤顯示在狀態橫幅）

        異常：
            WalletNotConnected / MissingJoinFields / ActionInProgress
        """
        account = self._require_account()
        if not preferences or not encrypted_info:
            raise MissingJoinFields("Both preferences and encrypted_info are required")

        with self._in_flight(self.JOIN):
            self._show_pending("Encrypting personal data with FHE...")

            try:
                encrypted_data = encrypt_profile(preferences, encrypted_info)
                contract = self.contracts.with_signer(account)

                now = self.clock()
                participant = Participant(
                    id=generate_participant_id(now, self.rng),
                    encrypted_data=encrypted_data,
                    preferences=preferences,
                    timestamp=int(now),
                    status=ParticipantStatus.PENDING,
                )
                RecordStore(contract).add_participant(participant)

                logger.info(f"Participant {participant.id} joined (signer {account})")
            except Exception as e:
                logger.error(f"Join failed: {e}", exc_info=True)
                if is_user_rejection(e):
                    self._show_error("Transaction rejected by user")
                else:
                    self._show_error(f"Submission failed: {_error_text(e)}")
                return None

            self.load_data()
            self._show_success("Encrypted data submitted securely!")
            return participant

    # ============ 驗證 ============

    def verify(self, participant_id: str) -> bool:
        """
        把參與者狀態改成 VERIFIED

        流程：
        1. 讀取紀錄（不存在時失敗）
        2. status 改成 verified，其他欄位不變
        3. 寫回合約
        4. 寫入成功後才更新本地列表

        返回：
            True 如果成功
        """
        account = self._require_account()

        with self._in_flight(self.VERIFY):
            self._show_pending("Verifying encrypted data...")

            try:
                records = RecordStore(self.contracts.with_signer(account))
                data = records.read_participant(participant_id)
                records.write_participant(
                    participant_id,
                    {**data, "status": ParticipantStatus.VERIFIED.value}
                )
            except Exception as e:
                logger.error(f"Verification of {participant_id} failed: {e}")
                self._show_error(f"Verification failed: {_error_text(e)}")
                return False

            self.store.dispatch(ParticipantVerified(participant_id))
            logger.info(f"Participant {participant_id} verified")
            self._show_success("Participant verified successfully!")
            return True

    # ============ 配對 ============

    def run_matching(self) -> List[MatchResult]:
        """
        執行配對（模擬 FHE 計算）

        流程：
        1. 取本地已驗證的參與者（保持列表順序）
        2. 固定等待 matching_delay_seconds
        3. 相鄰配對，每組一個 [60, 100] 的隨機分數
        4. 每組各自寫入紀錄並更新 match_keys（不批次）
        5. 全部成功後把新配對放到本地列表最前面

        注意：
            中途失敗時已寫入的配對不會回滾，也不會加到本地列表

        返回：
            新產生的配對；失敗時回傳空列表
        """
        account = self._require_account()
        verified = verified_participants(self.store.state.participants)
        if len(verified) < 2:
            raise NotEnoughVerifiedParticipants(len(verified))

        with self._in_flight(self.MATCHING):
            self._show_pending("Running FHE matching algorithm...")

            new_matches: List[MatchResult] = []
            try:
                self.sleep(self.settings.matching_delay_seconds)

                records = RecordStore(self.contracts.with_signer(account))

                for p1, p2 in select_pairs(verified, self.settings.max_matches_per_run):
                    now = self.clock()
                    match = MatchResult(
                        id=generate_match_id(now, self.rng),
                        participant1=p1.id,
                        participant2=p2.id,
                        compatibility_score=generate_compatibility_score(self.rng),
                        timestamp=int(now),
                    )
                    records.add_match(match)
                    new_matches.append(match)
            except Exception as e:
                logger.error(
                    f"Matching failed after {len(new_matches)} matches were written: {e}",
                    exc_info=True
                )
                self._show_error(f"Matching failed: {_error_text(e)}")
                return []

            self.store.dispatch(MatchesGenerated(tuple(new_matches)))
            logger.info(f"Generated {len(new_matches)} matches from {len(verified)} verified participants")
            self._show_success("FHE matching completed successfully!")
            return new_matches

    # ============ 服務狀態 ============

    def check_availability(self) -> Optional[bool]:
        """
        檢查合約服務是否可用

        返回：
            True / False；檢查失敗時回傳 None
        """
        try:
            available = self.contracts.read_only().is_available()
        except Exception as e:
            logger.error(f"Availability check failed: {e}")
            self._show_error("Availability check failed")
            return None

        if available:
            self._show_success("FHE matching service is available!")
        else:
            self._show_success("Service temporarily unavailable")
        return available
