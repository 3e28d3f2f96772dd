"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from typing import Generator

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.config import Settings
from src.db.schema import Base

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)

# A full legal game that ends in a draw: every block touches the previous one and colors alternate,
# following a pattern that never lines up more than 2 of the same color. Cell 42 stays empty.
DRAW_SEQUENCE = [
    24, 30, 23, 16, 15, 22, 29, 36, 43, 35, 28, 21, 14, 7, 0, 8,
    1, 2, 9, 3, 10, 17, 18, 25, 32, 31, 37, 44, 38, 45, 46, 39,
    47, 40, 33, 26, 19, 11, 4, 12, 5, 6, 13, 20, 27, 34, 41, 48,
]  # fmt: skip

# Red completes row 3 (24, 25, 26, 27) on the 7th block
RED_WINS_SEQUENCE = [24, 17, 25, 18, 26, 19, 27]


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        Base.metadata.drop_all(bind=engine)
        db.close()


@pytest.fixture
def settings() -> Settings:
    return Settings(log_level="DEBUG")


@pytest.fixture
def draw_sequence() -> list[int]:
    return list(DRAW_SEQUENCE)


@pytest.fixture
def red_wins_sequence() -> list[int]:
    return list(RED_WINS_SEQUENCE)
