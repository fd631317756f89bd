"""
API 共用的 dependency 與 response 轉換
"""
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from database import get_db
from schemas import StatsResponse, TransactionStatusResponse
from core.app_state import AppState, Store, TransactionStatus
from core.contract import ContractProvider
from core.matchmaking_manager import MatchmakingManager
from services.stats_service import build_stats


def get_store(request: Request) -> Store:
    """畫面狀態在 lifespan 建立，整個 app 共用一份"""
    return request.app.state.store


def get_manager(
    store: Store = Depends(get_store),
    db: Session = Depends(get_db)
) -> MatchmakingManager:
    return MatchmakingManager(store, ContractProvider(db))


def to_status_response(status: TransactionStatus) -> TransactionStatusResponse:
    return TransactionStatusResponse(
        visible=status.visible,
        status=status.status,
        message=status.message
    )


def to_stats_response(state: AppState) -> StatsResponse:
    return StatsResponse(**build_stats(state.participants, state.matches))
