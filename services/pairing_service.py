"""
配對服務：把已驗證的參與者兩兩配對

純計算邏輯，模擬 FHE 配對演算法（實際上是相鄰配對 + 隨機分數）
"""
import random
from typing import List, Optional, Sequence, Tuple

from models import ParticipantStatus
from schemas import Participant

MIN_COMPATIBILITY_SCORE = 60
MAX_COMPATIBILITY_SCORE = 100
DEFAULT_MAX_PAIRS = 5


def verified_participants(participants: Sequence[Participant]) -> List[Participant]:
    """保留原本順序，只取 VERIFIED 的參與者"""
    return [p for p in participants if p.status == ParticipantStatus.VERIFIED]


def select_pairs(
    participants: Sequence[Participant],
    max_pairs: int = DEFAULT_MAX_PAIRS
) -> List[Tuple[Participant, Participant]]:
    """
    相鄰配對

    規則：
    - 位置 0-1、2-3、4-5 ... 兩兩一組
    - 配對數上限：min(max_pairs, floor(人數 / 2))
    - 奇數人數時最後一位不配對

    參數：
        participants: 已驗證的參與者（順序即配對順序）
        max_pairs: 配對數上限

    返回：
        [(p1, p2), ...]

    範例：
        [A, B, C, D, E] -> [(A, B), (C, D)]，E 不配對
        [A, B, C] -> [(A, B)]
    """
    pair_count = min(max_pairs, len(participants) // 2)
    return [
        (participants[i * 2], participants[i * 2 + 1])
        for i in range(pair_count)
    ]


def generate_compatibility_score(rng: Optional[random.Random] = None) -> int:
    """均勻隨機的整數分數，範圍 [60, 100]（含兩端）"""
    rng = rng or random
    return rng.randint(MIN_COMPATIBILITY_SCORE, MAX_COMPATIBILITY_SCORE)
