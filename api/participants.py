"""
Participant API Endpoints

職責：
1. 查詢參與者列表（可搜尋）
2. 加入活動
3. 驗證參與者
4. 解碼參與者的 FHE payload
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
import logging

from schemas import ActionResponse, Participant, ParticipantJoin, ParticipantProfileResponse
from core.app_state import Store
from core.exceptions import ActionInProgress, MissingJoinFields, WalletNotConnected
from core.matchmaking_manager import MatchmakingManager
from services.fhe_service import decrypt_profile
from services.search_service import filter_participants
from api.deps import get_manager, get_store, to_status_response

router = APIRouter(prefix="/api/participants", tags=["participants"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[Participant])
def list_participants(search: Optional[str] = Query(None), store: Store = Depends(get_store)):
    """取得參與者列表（由新到舊），search 依 id / preferences 過濾"""
    return filter_participants(store.state.participants, search)


@router.post("/join", response_model=ActionResponse)
def join(payload: ParticipantJoin, manager: MatchmakingManager = Depends(get_manager)):
    """
    加入活動

    前置條件：
    - 已連接錢包（401）
    - preferences 與 encrypted_info 都不可為空（400）
    - 沒有其他 join 正在執行（409）

    合約錯誤不會變成 HTTP 錯誤，而是顯示在 transaction_status
    """
    try:
        manager.join(payload.preferences, payload.encrypted_info)
        state = manager.store.state
        return ActionResponse(
            transaction_status=to_status_response(manager.current_status()),
            participants=list(state.participants),
            matches=list(state.matches)
        )

    except WalletNotConnected as e:
        raise HTTPException(status_code=401, detail=str(e))
    except MissingJoinFields as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ActionInProgress as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to join: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{participant_id}/verify", response_model=ActionResponse)
def verify(participant_id: str, manager: MatchmakingManager = Depends(get_manager)):
    """驗證參與者（pending -> verified）"""
    try:
        manager.verify(participant_id)
        state = manager.store.state
        return ActionResponse(
            transaction_status=to_status_response(manager.current_status()),
            participants=list(state.participants),
            matches=list(state.matches)
        )

    except WalletNotConnected as e:
        raise HTTPException(status_code=401, detail=str(e))
    except ActionInProgress as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to verify participant {participant_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{participant_id}/profile", response_model=ParticipantProfileResponse)
def get_profile(participant_id: str, store: Store = Depends(get_store)):
    """
    解碼參與者的 FHE payload（佔位編碼，可逆）

    返回：
        送出時的 preferences 與 encrypted_info

    異常：
        404: 本地列表中沒有這位參與者
        422: payload 不是有效的 FHE 編碼
    """
    participant = next((p for p in store.state.participants if p.id == participant_id), None)
    if participant is None:
        raise HTTPException(status_code=404, detail="Participant not found")

    try:
        profile = decrypt_profile(participant.encrypted_data)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return ParticipantProfileResponse(
        id=participant.id,
        preferences=str(profile.get("preferences", "")),
        encrypted_info=str(profile.get("encryptedInfo", ""))
    )
