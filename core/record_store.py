"""
Record Store：合約 bytes <-> Participant / MatchResult 集合

職責：
1. 透過索引（participant_keys / match_keys）列出所有紀錄
2. 編碼 / 解碼紀錄的 JSON 格式
3. 新增紀錄時更新索引

索引格式：JSON 字串陣列（紀錄 ID）
紀錄 key：participant_<id> / match_<id>

注意：
- append() 是「先寫紀錄、再讀索引、append、寫回索引」，不是原子操作。
  兩個寫入者同時 append 時，後寫的索引會蓋掉先寫的（last-write-wins），
  中途失敗則會留下索引找不到的孤兒紀錄
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, TypeVar
import json
import logging

from pydantic import ValidationError

from models import ParticipantStatus
from schemas import MatchResult, Participant
from core.contract import DataContract, TransactionReceipt
from core.exceptions import ParticipantNotFound

logger = logging.getLogger(__name__)

T = TypeVar("T", Participant, MatchResult)


@dataclass(frozen=True)
class Collection:
    """一個集合的索引 key 與紀錄 key 前綴"""
    name: str
    index_key: str
    record_prefix: str

    def record_key(self, record_id: str) -> str:
        return f"{self.record_prefix}{record_id}"


PARTICIPANTS = Collection("participant", "participant_keys", "participant_")
MATCHES = Collection("match", "match_keys", "match_")


# ============ 編碼 / 解碼 ============

def encode_json(data: Any) -> bytes:
    """UTF-8 JSON，和 JSON.stringify 一樣沒有多餘空白"""
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def decode_json(raw: bytes) -> Any:
    return json.loads(raw.decode("utf-8"))


def participant_payload(participant: Participant) -> Dict[str, Any]:
    return {
        "data": participant.encrypted_data,
        "preferences": participant.preferences,
        "timestamp": participant.timestamp,
        "status": participant.status.value,
    }


def match_payload(match: MatchResult) -> Dict[str, Any]:
    return {
        "participant1": match.participant1,
        "participant2": match.participant2,
        "compatibilityScore": match.compatibility_score,
        "timestamp": match.timestamp,
    }


def decode_participant(record_id: str, data: Dict[str, Any]) -> Participant:
    """
    解析參與者紀錄

    缺少 status 時視為 pending。
    缺少其他欄位時拋出 KeyError / ValidationError
    """
    return Participant(
        id=record_id,
        encrypted_data=data["data"],
        preferences=data["preferences"],
        timestamp=data["timestamp"],
        status=data.get("status") or ParticipantStatus.PENDING,
    )


def decode_match(record_id: str, data: Dict[str, Any]) -> MatchResult:
    return MatchResult(
        id=record_id,
        participant1=data["participant1"],
        participant2=data["participant2"],
        compatibility_score=data["compatibilityScore"],
        timestamp=data["timestamp"],
    )


class RecordStore:
    """合約上的紀錄集合（participants / matches）"""

    def __init__(self, contract: DataContract):
        self.contract = contract

    def is_available(self) -> bool:
        return self.contract.is_available()

    # ============ 索引 ============

    def read_index(self, collection: Collection) -> List[str]:
        """
        讀取集合的索引

        索引不存在或無法解析時視為空集合（記 log，不中斷）。
        合約呼叫本身失敗時異常會往上拋
        """
        raw = self.contract.get_data(collection.index_key)
        if len(raw) == 0:
            return []

        try:
            keys = decode_json(raw)
        except ValueError as e:
            logger.error(f"Error parsing {collection.index_key}: {e}")
            return []

        if not isinstance(keys, list) or not all(isinstance(k, str) for k in keys):
            logger.error(f"Error parsing {collection.index_key}: expected a list of strings")
            return []

        return keys

    def append(self, collection: Collection, record_id: str, payload: Dict[str, Any]) -> TransactionReceipt:
        """
        新增一筆紀錄並把 ID 加到索引

        流程：
        1. 寫入紀錄
        2. 讀取目前的索引
        3. append 新 ID（不檢查是否已存在）
        4. 寫回索引

        返回：
            紀錄寫入的交易回執
        """
        receipt = self.contract.set_data(collection.record_key(record_id), encode_json(payload))

        keys = self.read_index(collection)
        keys.append(record_id)
        self.contract.set_data(collection.index_key, encode_json(keys))

        logger.info(f"Appended {collection.name} {record_id} (index size {len(keys)})")
        return receipt

    # ============ 讀取集合 ============

    def _load_all(self, collection: Collection, decode: Callable[[str, Dict[str, Any]], T]) -> List[T]:
        """
        讀取整個集合

        個別紀錄讀取失敗、為空、或無法解析時跳過，不中斷整批。
        結果依 timestamp 由新到舊排序；同 timestamp 保持索引順序
        """
        records: List[T] = []

        for record_id in self.read_index(collection):
            try:
                raw = self.contract.get_data(collection.record_key(record_id))
            except Exception as e:
                logger.error(f"Error loading {collection.name} {record_id}: {e}")
                continue

            if len(raw) == 0:
                continue

            try:
                data = decode_json(raw)
                if not isinstance(data, dict):
                    raise ValueError("record is not a JSON object")
                records.append(decode(record_id, data))
            except (ValueError, KeyError, TypeError, ValidationError) as e:
                logger.error(f"Error parsing {collection.name} data for {record_id}: {e}")

        # sorted() 是 stable sort，reverse=True 時仍保持相同 timestamp 的原本順序
        return sorted(records, key=lambda r: r.timestamp, reverse=True)

    def load_participants(self) -> List[Participant]:
        return self._load_all(PARTICIPANTS, decode_participant)

    def load_matches(self) -> List[MatchResult]:
        return self._load_all(MATCHES, decode_match)

    # ============ 單筆參與者 ============

    def read_participant(self, participant_id: str) -> Dict[str, Any]:
        """
        讀取參與者的原始 JSON

        異常：
            ParticipantNotFound: 紀錄不存在
            ValueError: 紀錄無法解析
        """
        raw = self.contract.get_data(PARTICIPANTS.record_key(participant_id))
        if len(raw) == 0:
            raise ParticipantNotFound(participant_id)

        data = decode_json(raw)
        if not isinstance(data, dict):
            raise ValueError(f"Participant {participant_id} record is not a JSON object")
        return data

    def write_participant(self, participant_id: str, payload: Dict[str, Any]) -> TransactionReceipt:
        return self.contract.set_data(PARTICIPANTS.record_key(participant_id), encode_json(payload))

    def add_participant(self, participant: Participant) -> TransactionReceipt:
        return self.append(PARTICIPANTS, participant.id, participant_payload(participant))

    def add_match(self, match: MatchResult) -> TransactionReceipt:
        return self.append(MATCHES, match.id, match_payload(match))
