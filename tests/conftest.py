import os
import sys
from datetime import datetime, timedelta, timezone

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from src.extract.schemas import FeedPage, FeedUser
from src.load.user_store import UserStore


class FakeClock:
    """Monotonic clock whose sleep advances time instead of blocking"""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeFeed:
    """Stands in for UserFeedClient; pages map to a page or a list of pages
    returned on successive calls."""

    def __init__(self, pages):
        self.pages = {n: list(p) if isinstance(p, list) else [p] for n, p in pages.items()}
        self.calls = []

    def fetch_page(self, page: int) -> FeedPage:
        self.calls.append(page)
        responses = self.pages.get(page)
        if not responses:
            return FeedPage(users=[], has_next_page=False)
        response = responses[0] if len(responses) == 1 else responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def make_users(prefix: str, count: int, start: datetime = None):
    """Users ordered most-recent-first, ids like ``prefix-0``"""
    start = start or datetime(2025, 1, 1, tzinfo=timezone.utc)
    return [
        FeedUser(
            user_id=f"{prefix}-{i}",
            email=f"{prefix}-{i}@example.com",
            ipAddress=f"8.8.{i % 256}.{i % 250 + 1}",
            identifierType="email",
            createdAt=(start - timedelta(minutes=i)).isoformat(),
            updatedAt=(start - timedelta(minutes=i)).isoformat(),
        )
        for i in range(count)
    ]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    with UserStore(":memory:") as s:
        yield s
