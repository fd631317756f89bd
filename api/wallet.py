"""
Wallet API Endpoints

只記錄目前連接的帳號地址，不處理錢包 provider
"""
from fastapi import APIRouter, Depends

from schemas import WalletConnect
from core.matchmaking_manager import MatchmakingManager
from api.deps import get_manager

router = APIRouter(prefix="/api/wallet", tags=["wallet"])


@router.post("/connect")
def connect_wallet(payload: WalletConnect, manager: MatchmakingManager = Depends(get_manager)):
    manager.connect_wallet(payload.account)
    return {"account": manager.store.state.account}


@router.post("/disconnect")
def disconnect_wallet(manager: MatchmakingManager = Depends(get_manager)):
    manager.disconnect_wallet()
    return {"account": manager.store.state.account}
