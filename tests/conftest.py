"""
Shared test fixtures for the Hearth test suite.

Provides fixtures for:
- A fixed, advanceable clock
- In-memory and failing context storage
- A scripted text generator
- Context store, context service and bots wired together
- Test data factories
"""

from datetime import datetime, timedelta, UTC
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from hearth.bots import Bots, create_bots
from hearth.bots.generation import GenerationRequest, TextGenerator
from hearth.context.service import ContextService
from hearth.context.storage.memory import MemoryContextAdapter
from hearth.context.store import ContextStore
from hearth.core.config import Settings
from hearth.core.errors import StoreUnavailable, UpstreamGenerationError
from hearth.core.models import AuthenticatedUser

FIXED_NOW = datetime(2025, 3, 1, 12, 0, 0, tzinfo=UTC)


# =============================================================================
# Clock
# =============================================================================


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def now_datetime(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FixedClock:
    """Provide a clock fixed at FIXED_NOW."""
    return FixedClock()


# =============================================================================
# Storage
# =============================================================================


class FailingStorage(MemoryContextAdapter):
    """In-memory storage whose reads and writes can be switched off."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_reads = False
        self.fail_writes = False

    async def read(self, user_id: str):
        if self.fail_reads:
            raise StoreUnavailable(f"read failed for {user_id}")
        return await super().read(user_id)

    async def write(self, user_id: str, document):
        if self.fail_writes:
            raise StoreUnavailable(f"write failed for {user_id}")
        await super().write(user_id, document)


@pytest.fixture
def storage() -> FailingStorage:
    """Provide in-memory storage that can be made to fail."""
    return FailingStorage()


@pytest_asyncio.fixture
async def store(storage: FailingStorage, clock: FixedClock) -> AsyncGenerator[ContextStore, None]:
    """Provide a connected context store on in-memory storage."""
    context_store = ContextStore(storage, clock=clock)
    await context_store.connect()
    yield context_store
    await context_store.disconnect()


@pytest.fixture
def service(store: ContextStore) -> ContextService:
    """Provide a context service on the test store."""
    return ContextService(store)


# =============================================================================
# Text Generation
# =============================================================================


class FakeGenerator(TextGenerator):
    """Returns queued replies (then ``default``) and records every request."""

    def __init__(self, default: str = "Here is my advice.") -> None:
        self.default = default
        self.replies: list[str] = []
        self.requests: list[GenerationRequest] = []
        self.error: Exception | None = None

    def queue(self, *replies: str) -> "FakeGenerator":
        self.replies.extend(replies)
        return self

    async def generate(self, request: GenerationRequest) -> str:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.replies:
            return self.replies.pop(0)
        return self.default

    def fail(self, details: str = "upstream down") -> None:
        self.error = UpstreamGenerationError(details)


@pytest.fixture
def generator() -> FakeGenerator:
    """Provide a scripted text generator."""
    return FakeGenerator()


# =============================================================================
# Settings, Users, Bots
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Settings independent of the environment and any .env file."""
    return Settings(
        _env_file=None,
        storage_backend="memory",
        gemini_api_key="test-key",
        default_city="Chennai",
        currency_symbol="₹",
        health_illness_days=7,
        api_token="",
    )


@pytest.fixture
def user() -> AuthenticatedUser:
    """Provide an authenticated test user."""
    return AuthenticatedUser(id="user-1", name="Asha", email="asha@example.com")


@pytest.fixture
def bots(service: ContextService, generator: FakeGenerator, settings: Settings) -> Bots:
    """Provide all bots wired to the test service and generator."""
    return create_bots(service, generator, settings)


# =============================================================================
# Test Data Factories
# =============================================================================


def iso(value: datetime) -> str:
    """Timestamp in the stored format."""
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def sick_health(started: datetime = FIXED_NOW, days: int = 7, **overrides) -> dict:
    """Health sub-tree for an active illness."""
    health = {
        "activeIllness": "reported_symptoms",
        "symptoms": ["I have a fever"],
        "startedAt": iso(started),
        "expiresAt": iso(started + timedelta(days=days)),
        "currentCondition": "sick",
    }
    health.update(overrides)
    return health


def transaction(amount: float, index: int = 0) -> dict:
    """Expense transaction entry."""
    return {
        "type": "expense",
        "amount": amount,
        "category": "general",
        "description": f"Expense {index}",
        "date": iso(FIXED_NOW - timedelta(days=index)),
    }
