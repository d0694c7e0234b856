"""Pytest fixtures for adstudio tests."""

import asyncio
from typing import Any, Callable, Generator, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from adstudio.core.campaign import CampaignBatchOrchestrator
from adstudio.core.dependencies import get_campaign_orchestrator, get_image_generator
from adstudio.core.image_generator import (
    ImageGenerationError,
    ImageGenerationErrorCode,
    ImageGenerationResult,
)
from adstudio.database import Base, build_engine, get_db
from adstudio.main import app
from adstudio.models.client import Client


class FakeImageGenerator:
    """Stands in for ImageGenerator and records how calls overlap.

    ``outcomes`` decides each call's result by call order: True succeeds,
    False raises a provider error, an exception instance is raised as-is.
    When the list runs out the generator keeps succeeding.
    """

    def __init__(self, outcomes: Optional[list] = None, delay: float = 0.01) -> None:
        self.outcomes = list(outcomes or [])
        self.delay = delay
        self.calls: list[dict[str, Any]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def generate(self, prompt: str, **options: Any) -> ImageGenerationResult:
        call_number = len(self.calls)
        self.calls.append({"prompt": prompt, **options})
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            outcome = self.outcomes[call_number] if call_number < len(self.outcomes) else True
            if isinstance(outcome, Exception):
                raise outcome
            if not outcome:
                raise ImageGenerationError(ImageGenerationErrorCode.PROVIDER_ERROR, f"Provider rejected: {prompt}")
            return ImageGenerationResult(
                images=[
                    {
                        "url": f"https://cdn.example.com/{call_number}.jpg",
                        "width": 1024,
                        "height": 1024,
                        "content_type": "image/jpeg",
                    }
                ],
                seed=1000 + call_number,
                request_id=f"req-{call_number}",
                model="fal-ai/flux/dev",
            )
        finally:
            self.in_flight -= 1


@pytest.fixture(scope="function")
def test_db_engine(tmp_path):
    """Create a SQLite database engine for testing."""
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")

    # Create all tables
    Base.metadata.create_all(bind=engine)

    yield engine

    # Cleanup: drop all tables
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def test_session_factory(test_db_engine) -> sessionmaker:
    """Session factory bound to the test database."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_db_engine,
    )


@pytest.fixture(scope="function")
def test_db_session(test_session_factory) -> Generator[Session, None, None]:
    """Create a database session for testing with automatic rollback."""
    session = test_session_factory()

    try:
        yield session
    finally:
        # Rollback any uncommitted changes to clean up test data
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def fake_image_generator() -> FakeImageGenerator:
    """Image generator that always succeeds."""
    return FakeImageGenerator()


@pytest.fixture(scope="function")
def orchestrator(test_session_factory, fake_image_generator) -> CampaignBatchOrchestrator:
    """Batch orchestrator wired to the test database and the fake generator."""
    return CampaignBatchOrchestrator(
        session_factory=test_session_factory,
        image_generator=fake_image_generator,
        concurrency=3,
        max_items=20,
    )


@pytest.fixture(scope="function")
def test_client(test_session_factory, orchestrator, fake_image_generator) -> Generator[TestClient, None, None]:
    """Create a test client with database, orchestrator and image generator overrides."""

    def override_get_db() -> Generator[Session, None, None]:
        """Give every request its own session on the test database."""
        db = test_session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_campaign_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_image_generator] = lambda: fake_image_generator

    client = TestClient(app)

    try:
        yield client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def create_client(test_db_session: Session) -> Callable:
    """Factory function to create client workspaces directly in the database.

    Example:
        ```python
        def test_example(create_client):
            client = create_client(name="Acme")
            assert client.id is not None
        ```
    """

    def _create_client(name: str = "Acme") -> Client:
        client = Client(name=name)
        test_db_session.add(client)
        test_db_session.commit()
        test_db_session.refresh(client)
        return client

    return _create_client
