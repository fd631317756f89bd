"""
自定義異常類別

集中管理所有業務邏輯異常，方便 API 層統一處理
"""


class MatchDatingException(Exception):
    """所有配對服務異常的基類"""
    pass


# ============ Participant 相關異常 ============

class ParticipantNotFound(MatchDatingException):
    """參與者紀錄不存在（合約回傳空的 bytes）"""
    def __init__(self, participant_id):
        self.participant_id = participant_id
        super().__init__(f"Participant {participant_id} not found")


class MissingJoinFields(MatchDatingException):
    """加入時缺少必填欄位（preferences / encrypted_info）"""
    pass


# ============ Wallet / 合約相關異常 ============

class WalletNotConnected(MatchDatingException):
    """尚未連接錢包"""
    def __init__(self):
        super().__init__("Please connect wallet first")


class SignerUnavailable(MatchDatingException):
    """無法取得帶有 signer 的合約（寫入需要 signer）"""
    def __init__(self):
        super().__init__("Failed to get contract with signer")


# ============ Action 相關異常 ============

class ActionInProgress(MatchDatingException):
    """同一個動作正在執行中"""
    def __init__(self, action):
        self.action = action
        super().__init__(f"Action {action} is already in progress")


class NotEnoughVerifiedParticipants(MatchDatingException):
    """已驗證的參與者少於 2 位，無法配對"""
    def __init__(self, verified_count):
        self.verified_count = verified_count
        super().__init__(
            f"Need at least 2 verified participants to run matching, got {verified_count}"
        )
