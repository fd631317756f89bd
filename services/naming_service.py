"""
命名服務：生成 Participant ID 和 Match ID

純計算邏輯，不檢查唯一性
"""
import random
import string
import time
from typing import Optional

BASE36_ALPHABET = string.digits + string.ascii_lowercase


def _base36_suffix(length: int, rng: random.Random) -> str:
    return ''.join(rng.choices(BASE36_ALPHABET, k=length))


def _generate_id(suffix_length: int, now: Optional[float], rng: Optional[random.Random]) -> str:
    now = time.time() if now is None else now
    rng = rng or random
    return f"{int(now * 1000)}-{_base36_suffix(suffix_length, rng)}"


def generate_participant_id(now: Optional[float] = None, rng: Optional[random.Random] = None) -> str:
    """
    生成參與者 ID

    格式：「<毫秒時間戳>-<7 位 base36>」
    範例：1718000000000-k3j9x0a

    注意：
    - 不檢查唯一性（由呼叫者負責）
    - 36^7 種後綴，同一毫秒內碰撞機率極低
    """
    return _generate_id(7, now, rng)


def generate_match_id(now: Optional[float] = None, rng: Optional[random.Random] = None) -> str:
    """
    生成配對 ID

    格式：「<毫秒時間戳>-<4 位 base36>」
    範例：1718000000000-z81q
    """
    return _generate_id(4, now, rng)
