import asyncio
import sys
from datetime import timedelta
from pathlib import Path

import pytest
from sqlalchemy.pool import NullPool

sys.path.append(str(Path(__file__).resolve().parents[1]))

from licensegate.clock import utcnow
from licensegate.db.session import build_engine, build_sessionmaker, init_models
from licensegate.models.license import License
from licensegate.models.user import User
from licensegate.services.license_service import get_license_by_key

SECRET = "test-activation-secret"


class RecordingDelay:
    """Delay stand-in that counts calls instead of sleeping."""

    def __init__(self):
        self.calls = 0

    async def __call__(self):
        self.calls += 1


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    asyncio.run(init_models(engine))
    yield engine
    asyncio.run(engine.dispose())


@pytest.fixture
def session_factory(engine):
    return build_sessionmaker(engine)


@pytest.fixture
def seed(session_factory):
    """Insert a license (and optionally its owner) and return the key."""

    def _seed(key="ABCD-1234-EFGH", product_name="Starter Theme", owner=None, **fields):
        async def insert():
            async with session_factory() as db:
                owner_id = None
                if owner:
                    user = User(email=f"{owner.lower().replace(' ', '.')}@example.com", display_name=owner)
                    db.add(user)
                    await db.flush()
                    owner_id = user.id
                db.add(License(key=key, product_name=product_name, owner_id=owner_id, **fields))
                await db.commit()

        asyncio.run(insert())
        return key

    return _seed


@pytest.fixture
def load(session_factory):
    def _load(key):
        async def fetch():
            async with session_factory() as db:
                return await get_license_by_key(db, key)

        return asyncio.run(fetch())

    return _load


def past(days=1):
    return utcnow() - timedelta(days=days)


def future(days=30):
    return utcnow() + timedelta(days=days)
