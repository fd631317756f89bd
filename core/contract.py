"""
Key/Value 合約介面

模擬鏈上合約的三個方法：
- getData(key) -> bytes
- setData(key, bytes) -> 交易回執
- isAvailable() -> bool

資料實際存在 contract_entries 表。
每次 setData 都是獨立的 transaction（和鏈上一筆交易一樣），
紀錄與索引的寫入之間沒有共同的 transaction
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
import hashlib
import logging

from sqlalchemy import text
from sqlalchemy.orm import Session

from database import transactional, get_settings
from models import ContractEntry
from core.exceptions import SignerUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransactionReceipt:
    """setData 的交易回執"""
    tx_hash: str
    key: str
    signer: str
    size: int


class DataContract(ABC):
    """合約介面（record store 只依賴這三個方法）"""

    @abstractmethod
    def get_data(self, key: str) -> bytes:
        """key 不存在時回傳 b""（和合約的預設值一樣）"""

    @abstractmethod
    def set_data(self, key: str, value: bytes) -> TransactionReceipt:
        ...

    @abstractmethod
    def is_available(self) -> bool:
        ...


@transactional
def write_entry(db: Session, key: str, value: bytes, signer: str) -> ContractEntry:
    """寫入一筆合約資料（覆蓋舊值）"""
    entry = db.get(ContractEntry, key)
    if entry is None:
        entry = ContractEntry(key=key, value=value, signer=signer)
        db.add(entry)
    else:
        entry.value = value
        entry.signer = signer
    return entry


class DatabaseContract(DataContract):
    """
    以 SQLAlchemy 實作的合約

    參數：
        db: SQLAlchemy Session
        signer: 簽署交易的帳號；None 表示唯讀合約
        available: isAvailable() 的回傳值，預設讀 settings
    """

    def __init__(self, db: Session, signer: Optional[str] = None, available: Optional[bool] = None):
        self.db = db
        self.signer = signer
        self.available = get_settings().contract_available if available is None else available

    def get_data(self, key: str) -> bytes:
        entry = self.db.get(ContractEntry, key)
        if entry is None or entry.value is None:
            return b""
        return bytes(entry.value)

    def set_data(self, key: str, value: bytes) -> TransactionReceipt:
        if not self.signer:
            raise SignerUnavailable()

        write_entry(self.db, key, value, self.signer)

        tx_hash = "0x" + hashlib.sha256(
            self.signer.encode("utf-8") + key.encode("utf-8") + value
        ).hexdigest()
        logger.debug(f"setData {key} ({len(value)} bytes) signed by {self.signer}: {tx_hash}")

        return TransactionReceipt(tx_hash=tx_hash, key=key, signer=self.signer, size=len(value))

    def is_available(self) -> bool:
        # 資料庫連不上時直接拋出異常，由呼叫者處理
        self.db.execute(text("SELECT 1"))
        return self.available


class ContractProvider:
    """
    提供唯讀 / 帶 signer 的合約

    對應前端的 getContractReadOnly() / getContractWithSigner()
    """

    def __init__(self, db: Session):
        self.db = db

    def read_only(self) -> DataContract:
        return DatabaseContract(self.db)

    def with_signer(self, account: str) -> DataContract:
        if not account:
            raise SignerUnavailable()
        return DatabaseContract(self.db, signer=account)
