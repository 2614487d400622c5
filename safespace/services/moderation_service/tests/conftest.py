"""Shared fixtures for Moderation Service tests."""
from concurrent.futures import Executor, Future
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from safespace.shared.database import InMemoryRecordStore
from safespace.shared.errors import ClassificationUnavailableError
from safespace.services.moderation_service.classifier_bridge import ClassificationVerdict
from safespace.services.moderation_service.config import ModerationConfig
from safespace.services.moderation_service.identity import StaticIdentityProvider
from safespace.services.moderation_service.pipeline import build_pipeline

MODERATOR_ID = "mod-1"


class FakeClock:
    """Settable clock; tests advance it explicitly."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


class FakeClassifier:
    """Returns a canned verdict payload, or raises when given an exception."""

    def __init__(self, payload=None, error=None):
        self.payload = payload or {"riskLevel": "none", "concerns": [], "recommendedAction": "none"}
        self.error = error
        self.calls = []

    async def classify(self, text, kind):
        self.calls.append((text, kind))
        if self.error is not None:
            raise self.error
        return ClassificationVerdict.from_payload(self.payload)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def identity():
    return StaticIdentityProvider(
        moderator_ids=[MODERATOR_ID],
        display_names={"reporter-1": "Sam"},
    )


@pytest.fixture
def alert_publisher():
    publisher = MagicMock()
    publisher.enabled = True
    publisher.publish.return_value = True
    return publisher


@pytest.fixture
def make_pipeline(store, identity, alert_publisher, clock):
    """Factory for pipelines sharing the test store and clock."""

    def _make(classifier=None, **config_overrides):
        return build_pipeline(
            config=ModerationConfig(**config_overrides),
            store=store,
            identity=identity,
            classifier=classifier,
            executor=InlineExecutor(),
            alert_publisher=alert_publisher,
            clock=clock,
        )

    return _make


@pytest.fixture
def pipeline(make_pipeline):
    return make_pipeline()


@pytest.fixture
def unavailable_classifier():
    return FakeClassifier(error=ClassificationUnavailableError("service down"))


@pytest.fixture
def classifier_factory():
    return FakeClassifier


@pytest.fixture
def moderator_id():
    return MODERATOR_ID
