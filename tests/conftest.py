"""Pytest fixtures for testing"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import httpx
import pytest
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Generator, List
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from finsight_gateway.api.main import create_app
from finsight_gateway.infrastructure.clients.bureau import BureauClient, BureauClientConfig
from finsight_gateway.infrastructure.database.models import Base
from finsight_gateway.infrastructure.database.repositories import StatementRepository
from finsight_gateway.infrastructure.database.session import get_db
from finsight_gateway.domain.models import Transaction


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

BUREAU_URL = "http://bureau.test/v1/credit/check"

GOOD_SCORE = {
    "score": 712,
    "risk_band": "Good",
    "enquiries_6m": 2,
    "defaults": 0,
    "open_loans": 1,
    "trade_lines": 9,
}


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def make_transaction() -> Callable[..., Transaction]:
    """Build domain transactions with sequential ids"""
    counter = {"next_id": 1}

    def _make(amount, description: str = "Transaction", on: date = date(2024, 3, 15)) -> Transaction:
        txn = Transaction(
            id=counter["next_id"],
            statement_id=1,
            description=description,
            amount=Decimal(str(amount)),
            transaction_date=on,
        )
        counter["next_id"] += 1
        return txn

    return _make


@pytest.fixture
def sample_lines() -> List[dict]:
    """Three months of salary with everyday spending"""
    base_date = date(2024, 1, 5)
    lines = []

    for month in range(3):
        lines.append(
            {
                "description": "Salary Deposit",
                "amount": "5000.00",
                "transaction_date": base_date + timedelta(days=month * 31),
                "balance": "5200.00",
            }
        )

    lines += [
        {"description": "Grocery Store", "amount": "-100.00", "transaction_date": date(2024, 1, 8)},
        {"description": "Restaurant ABC", "amount": "-125.00", "transaction_date": date(2024, 1, 12)},
        {"description": "Gas Station", "amount": "-45.00", "transaction_date": date(2024, 2, 3)},
        {"description": "Online Shopping", "amount": "-200.00", "transaction_date": date(2024, 2, 20)},
        {"description": "Monthly Rent", "amount": "-1500.00", "transaction_date": date(2024, 3, 1)},
    ]
    return lines


@pytest.fixture
def create_statement(db: Session) -> Callable[..., int]:
    """Store a statement the way the ingestion service would; returns its id"""

    def _create(user_id: int, lines: List[dict], filename: str = "statement.csv") -> int:
        statement = StatementRepository(db).create_statement(user_id, filename, lines)
        db.commit()
        return statement.id

    return _create


class BureauStub:
    """Scripted bureau: replies with queued (status, body) pairs or raises queued exceptions"""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.requests: List[httpx.Request] = []

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        status, body = reply
        return httpx.Response(status, json=body)

    def client(self, **config_overrides) -> BureauClient:
        config = BureauClientConfig(
            api_url=config_overrides.pop("api_url", BUREAU_URL),
            api_key=config_overrides.pop("api_key", "test-api-key"),
            **config_overrides,
        )
        return BureauClient(config, transport=httpx.MockTransport(self.handler))


@pytest.fixture
def bureau_stub() -> Callable[..., BureauStub]:
    return BureauStub


class RecordingSleep:
    """Stands in for asyncio.sleep; remembers requested delays instead of waiting"""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def fake_sleep() -> RecordingSleep:
    return RecordingSleep()
