import os
import sys
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from datetime import UTC, date, datetime, timedelta

import pytest
import fakeredis.aioredis as fakeredis
from bson import ObjectId
from jose import jwt

from workstay.config import AuthSettings, GCPSettings, ImageModerationSettings, NotificationSettings
from workstay.models.opportunity import Opportunity, OpportunityLocation, OpportunityStatus, TimeSlot


def new_id() -> str:
    return str(ObjectId())


def make_token(user_id: str, role: str, settings: AuthSettings, expires_minutes: int = 60) -> str:
    payload = {
        "sub": user_id,
        "role": role,
        "exp": datetime.now(UTC) + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, settings.secret, algorithm=settings.algorithm)


def make_slot(start: str, end: str, **kwargs) -> TimeSlot:
    return TimeSlot(start_date=date.fromisoformat(start), end_date=date.fromisoformat(end), **kwargs)


def make_opportunity(time_slots=None, has_time_slots=None, **kwargs) -> Opportunity:
    slots = time_slots or []
    defaults = {
        "id": new_id(),
        "host_id": new_id(),
        "title": "Organic farm helper",
        "slug": "organic-farm-helper-1a2b3c4d",
        "public_id": "3f1c2d9e-0000-4000-8000-000000000001",
        "status": OpportunityStatus.ACTIVE,
        "location": OpportunityLocation(city="Hualien", country="Taiwan"),
        "time_slots": slots,
        "has_time_slots": bool(slots) if has_time_slots is None else has_time_slots,
    }
    defaults.update(kwargs)
    return Opportunity(**defaults)


@pytest.fixture
def fake_redis():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def gcp_settings():
    return GCPSettings(public_bucket="ws-public", private_bucket="ws-private")


@pytest.fixture
def moderation_settings():
    return ImageModerationSettings(imagekit_endpoint="https://ik.example.com/ws/")


@pytest.fixture
def notification_settings():
    return NotificationSettings(
        queue_key="test:notifications",
        dead_letter_key="test:notifications:dead",
        max_attempts=3,
        workers=1,
        poll_timeout_sec=1,
    )
