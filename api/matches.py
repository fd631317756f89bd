"""
Match API Endpoints

職責：
1. 查詢配對列表（可搜尋）
2. 執行配對演算法
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
import logging

from schemas import ActionResponse, MatchResult
from core.app_state import Store
from core.exceptions import ActionInProgress, NotEnoughVerifiedParticipants, WalletNotConnected
from core.matchmaking_manager import MatchmakingManager
from services.search_service import filter_matches
from api.deps import get_manager, get_store, to_status_response

router = APIRouter(prefix="/api/matches", tags=["matches"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[MatchResult])
def list_matches(search: Optional[str] = Query(None), store: Store = Depends(get_store)):
    return filter_matches(store.state.matches, search)


@router.post("/run", response_model=ActionResponse)
def run_matching(manager: MatchmakingManager = Depends(get_manager)):
    """
    執行配對演算法

    前置條件：
    - 已連接錢包（401）
    - 至少 2 位已驗證的參與者（400）
    - 沒有其他配對正在執行（409）

    注意：
        會固定等待 matching_delay_seconds（模擬 FHE 計算）
    """
    try:
        manager.run_matching()
        state = manager.store.state
        return ActionResponse(
            transaction_status=to_status_response(manager.current_status()),
            participants=list(state.participants),
            matches=list(state.matches)
        )

    except WalletNotConnected as e:
        raise HTTPException(status_code=401, detail=str(e))
    except NotEnoughVerifiedParticipants as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ActionInProgress as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to run matching: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
