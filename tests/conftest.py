"""
Shared fixtures.

The environment is set before any project module is imported so the
module-level Settings/engine pick up an in-memory database and no
matching delay.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["MATCHING_DELAY_SECONDS"] = "0"

import random

import pytest

import models  # noqa: F401  registers ContractEntry on Base.metadata
from database import Base, SessionLocal, Settings, engine
from core.app_state import Store
from core.matchmaking_manager import MatchmakingManager
from tests.fakes import FakeClock, FakeContract, FakeContractProvider


@pytest.fixture
def db():
    """Fresh contract tables for each test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def settings():
    return Settings(matching_delay_seconds=0, success_banner_seconds=2, error_banner_seconds=3)


@pytest.fixture
def clock():
    return FakeClock(1_700_000_000.0)


@pytest.fixture
def contract():
    return FakeContract()


@pytest.fixture
def store():
    return Store()


@pytest.fixture
def manager(store, contract, settings, clock):
    return MatchmakingManager(
        store,
        FakeContractProvider(contract),
        settings=settings,
        clock=clock,
        sleep=clock.sleep,
        rng=random.Random(42),
    )
