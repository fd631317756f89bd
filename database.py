from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool
from pydantic_settings import BaseSettings
from functools import lru_cache, wraps
import logging

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    database_url: str = "sqlite:///./fhe_match_dating.db"

    # 合約服務開關（isAvailable() 的回傳值）
    contract_available: bool = True

    # 模擬 FHE 計算的固定等待時間（秒）
    matching_delay_seconds: float = 3.0

    # 狀態橫幅自動消失的時間（秒）
    success_banner_seconds: float = 2.0
    error_banner_seconds: float = 3.0

    # 每次配對最多產生的配對數
    max_matches_per_run: int = 5

    log_level: str = "info"

    class Config:
        env_file = ".env"


@lru_cache()
def get_settings():
    return Settings()


settings = get_settings()


def _engine_kwargs(database_url: str) -> dict:
    """
    依照資料庫類型組出 create_engine 參數

    SQLite 需要特殊設定：connect_args={"check_same_thread": False}
    記憶體資料庫（sqlite://）每條連線都是獨立的資料庫，
    所以改用 StaticPool 讓所有 session 共用同一條連線
    """
    if not database_url.startswith("sqlite"):
        return {"pool_pre_ping": True}

    kwargs = {"connect_args": {"check_same_thread": False}}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True
    return kwargs


engine = create_engine(settings.database_url, **_engine_kwargs(settings.database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """
    FastAPI dependency：提供 Database Session

    使用 yield 確保 session 在請求結束後會被關閉
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def transactional(func):
    """
    Transaction decorator：確保單次資料庫操作的原子性

    使用方式：
        @transactional
        def write_entry(db: Session, key: str, value: bytes):
            # 所有 DB 操作都在一個 transaction 內
            db.merge(ContractEntry(key=key, value=value))
            # 不需要手動 commit，decorator 會處理

    如果函式內發生異常：
        - 自動 rollback
        - 異常會被重新拋出（讓上層處理）

    注意：
        - 第一個參數必須是 db: Session
        - 每次 setData 都是獨立的 transaction，
          紀錄與索引的寫入之間沒有共同的 transaction
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        # 找出 db session（可能在 args 或 kwargs）
        db = None
        if args and isinstance(args[0], Session):
            db = args[0]
        elif 'db' in kwargs:
            db = kwargs['db']

        if db is None:
            raise ValueError(
                f"@transactional requires 'db: Session' as first argument, "
                f"but got args={args}, kwargs={kwargs}"
            )

        try:
            result = func(*args, **kwargs)
            db.commit()
            return result
        except Exception as e:
            logger.error(f"Transaction failed in {func.__name__}: {e}", exc_info=True)
            db.rollback()
            raise

    return wrapper
