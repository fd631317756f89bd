from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from database import Base, SessionLocal, engine, settings
from core.app_state import Store
from core.contract import ContractProvider
from core.matchmaking_manager import MatchmakingManager
from api import matches, participants, status, wallet


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: 建立合約資料表，並載入一次畫面狀態
    Base.metadata.create_all(bind=engine)

    app.state.store = Store()
    db = SessionLocal()
    try:
        MatchmakingManager(app.state.store, ContractProvider(db)).load_data()
    finally:
        db.close()

    yield


app = FastAPI(
    title="FHE Match Dating API",
    description="Backend API for the privacy-preserving matchmaking demo",
    version="1.0.0",
    lifespan=lifespan
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure this properly in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(wallet.router)
app.include_router(participants.router)
app.include_router(matches.router)
app.include_router(status.router)


@app.get("/")
def root():
    return {"message": "FHE Match Dating API", "status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level=settings.log_level)
