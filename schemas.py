"""
Pydantic schemas

Participant / MatchResult 是整個系統流通的資料型別；
其餘是 API 的 request / response 格式
"""
from typing import List, Optional

from pydantic import BaseModel, Field

from models import ParticipantStatus, TransactionState


class Participant(BaseModel):
    id: str
    encrypted_data: str
    preferences: str
    timestamp: int
    status: ParticipantStatus = ParticipantStatus.PENDING


class MatchResult(BaseModel):
    id: str
    participant1: str
    participant2: str
    compatibility_score: int
    timestamp: int


# ============ Request ============

class WalletConnect(BaseModel):
    account: str = Field(min_length=1)


class ParticipantJoin(BaseModel):
    preferences: str = ""
    encrypted_info: str = ""


# ============ Response ============

class TransactionStatusResponse(BaseModel):
    visible: bool
    status: TransactionState
    message: str


class ScoreBucket(BaseModel):
    min_score: int
    max_score: int
    count: int
    percentage: float


class StatsResponse(BaseModel):
    total_participants: int
    verified_count: int
    pending_count: int
    total_matches: int
    avg_compatibility: str
    score_distribution: List[ScoreBucket]


class AvailabilityResponse(BaseModel):
    available: Optional[bool]
    transaction_status: TransactionStatusResponse


class StateResponse(BaseModel):
    account: str
    loading: bool
    is_refreshing: bool
    in_flight: List[str]
    transaction_status: TransactionStatusResponse
    participants: List[Participant]
    matches: List[MatchResult]
    stats: StatsResponse


class ActionResponse(BaseModel):
    transaction_status: TransactionStatusResponse
    participants: List[Participant] = []
    matches: List[MatchResult] = []


class ParticipantProfileResponse(BaseModel):
    id: str
    preferences: str
    encrypted_info: str
