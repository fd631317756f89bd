"""
State API Endpoints - 短輪詢版

前端靠 GET /api/state 取得完整畫面狀態（含狀態橫幅），
狀態橫幅過期後在讀取時自動隱藏
"""
from fastapi import APIRouter, Depends, HTTPException
import logging

from schemas import AvailabilityResponse, StateResponse, StatsResponse
from core.app_state import Store
from core.exceptions import ActionInProgress
from core.matchmaking_manager import MatchmakingManager
from api.deps import get_manager, get_store, to_stats_response, to_status_response

router = APIRouter(prefix="/api", tags=["state"])
logger = logging.getLogger(__name__)


@router.get("/state", response_model=StateResponse)
def get_state(manager: MatchmakingManager = Depends(get_manager)):
    status = manager.current_status()
    state = manager.store.state
    return StateResponse(
        account=state.account,
        loading=state.loading,
        is_refreshing=state.is_refreshing,
        in_flight=sorted(state.in_flight),
        transaction_status=to_status_response(status),
        participants=list(state.participants),
        matches=list(state.matches),
        stats=to_stats_response(state)
    )


@router.get("/stats", response_model=StatsResponse)
def get_stats(store: Store = Depends(get_store)):
    return to_stats_response(store.state)


@router.post("/refresh", response_model=StateResponse)
def refresh(manager: MatchmakingManager = Depends(get_manager)):
    """重新從合約載入所有資料（409 如果已在重新整理中）"""
    try:
        manager.refresh()
    except ActionInProgress as e:
        raise HTTPException(status_code=409, detail=str(e))
    return get_state(manager)


@router.post("/availability", response_model=AvailabilityResponse)
def check_availability(manager: MatchmakingManager = Depends(get_manager)):
    available = manager.check_availability()
    return AvailabilityResponse(
        available=available,
        transaction_status=to_status_response(manager.current_status())
    )
