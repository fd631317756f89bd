"""
資料模型

合約儲存層只有一張 key/value 表（模擬鏈上合約的 getData / setData），
Participant 與 MatchResult 以 JSON bytes 的形式存在 value 裡
"""
from datetime import datetime, timezone
import enum

from sqlalchemy import Column, DateTime, LargeBinary, String

from database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ParticipantStatus(str, enum.Enum):
    """參與者狀態：只能 PENDING -> VERIFIED，不會回退"""
    PENDING = "pending"
    VERIFIED = "verified"


class TransactionState(str, enum.Enum):
    """狀態橫幅的三種狀態"""
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


class ContractEntry(Base):
    """合約儲存的一筆資料（key -> bytes）"""
    __tablename__ = "contract_entries"

    key = Column(String, primary_key=True)
    value = Column(LargeBinary, nullable=False, default=b"")
    signer = Column(String, nullable=True)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)
