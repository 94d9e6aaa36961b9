import sys
from datetime import date, datetime, timezone
from pathlib import Path

import pytest


def _configure_path() -> None:
    src_path = Path(__file__).resolve().parents[1] / "src"
    if src_path.exists():
        sys.path.insert(0, str(src_path))


_configure_path()

from recovery_core.observability.circle import get_circle_store  # noqa: E402
from recovery_core.schemas.circle import CircleMember, Relationship  # noqa: E402


@pytest.fixture(autouse=True)
def reset_circle_observability():
    store = get_circle_store()
    store.reset()
    yield
    store.reset()


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def jane() -> CircleMember:
    stamp = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)
    return CircleMember(
        id="m1",
        name="Jane",
        clean_date=date(2023, 2, 14),
        relationship=Relationship.SPONSEE,
        created_at=stamp,
        updated_at=stamp,
    )
