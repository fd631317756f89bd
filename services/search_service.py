"""
Search filtering for the participant and match lists.

Case-insensitive substring match; an empty term returns the list unchanged.
"""
from typing import List, Optional, Sequence

from schemas import MatchResult, Participant


def filter_participants(participants: Sequence[Participant], term: Optional[str]) -> List[Participant]:
    if not term:
        return list(participants)
    needle = term.lower()
    return [
        p for p in participants
        if needle in p.id.lower() or needle in p.preferences.lower()
    ]


def filter_matches(matches: Sequence[MatchResult], term: Optional[str]) -> List[MatchResult]:
    if not term:
        return list(matches)
    needle = term.lower()
    return [
        m for m in matches
        if needle in m.id.lower()
        or needle in m.participant1.lower()
        or needle in m.participant2.lower()
    ]
