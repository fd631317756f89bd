"""
統計服務：計算參與者與配對的統計數字

純計算邏輯，輸入是畫面狀態中的兩個集合
"""
from typing import Dict, List, Sequence, Any

from models import ParticipantStatus
from schemas import MatchResult, Participant

# 分數分布的區間下界，每個區間寬度 10（例如 80-89）
SCORE_BUCKETS = [80, 70, 60, 50]


def count_by_status(participants: Sequence[Participant], status: ParticipantStatus) -> int:
    return sum(1 for p in participants if p.status == status)


def average_compatibility(matches: Sequence[MatchResult]) -> str:
    """
    平均相容度，固定一位小數

    範例：
        [] -> "0.0"
        [60, 71] -> "65.5"
    """
    if not matches:
        return "0.0"
    total = sum(m.compatibility_score for m in matches)
    return f"{total / len(matches):.1f}"


def score_distribution(matches: Sequence[MatchResult]) -> List[Dict[str, Any]]:
    """
    分數分布

    每個區間 [min, min + 10)，percentage 是佔所有配對的百分比。
    90 分以上不落在任何區間
    """
    buckets = []
    for min_score in SCORE_BUCKETS:
        count = sum(
            1 for m in matches
            if min_score <= m.compatibility_score < min_score + 10
        )
        percentage = (count / len(matches) * 100) if matches else 0.0
        buckets.append({
            "min_score": min_score,
            "max_score": min_score + 9,
            "count": count,
            "percentage": percentage,
        })
    return buckets


def build_stats(participants: Sequence[Participant], matches: Sequence[MatchResult]) -> Dict[str, Any]:
    return {
        "total_participants": len(participants),
        "verified_count": count_by_status(participants, ParticipantStatus.VERIFIED),
        "pending_count": count_by_status(participants, ParticipantStatus.PENDING),
        "total_matches": len(matches),
        "avg_compatibility": average_compatibility(matches),
        "score_distribution": score_distribution(matches),
    }
