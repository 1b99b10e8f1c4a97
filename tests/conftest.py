"""
Pytest Configuration and Fixtures.

Every test gets its own sqlite file; log output goes to a scratch directory.
"""
import os
import random
import tempfile

_SCRATCH = tempfile.mkdtemp(prefix="kanjiquiz-tests-")
os.environ.setdefault("KANJIQUIZ_LOG_DIR", os.path.join(_SCRATCH, "log"))
os.environ.setdefault("KANJIQUIZ_DB_DIR", os.path.join(_SCRATCH, "db"))
os.environ.setdefault("KANJIQUIZ_VOCAB_DIR", os.path.join(_SCRATCH, "vocabulary"))

import pytest  # noqa: E402

from kanjiquiz.database import Database  # noqa: E402
from kanjiquiz.models import Item, ItemSet  # noqa: E402
from kanjiquiz.order_store import OrderStore  # noqa: E402
from kanjiquiz.session_store import SessionStore  # noqa: E402


@pytest.fixture
def db(tmp_path):
    database = Database(str(tmp_path / "quiz.db"))
    database.init_db()
    return database


@pytest.fixture
def orders(db):
    return OrderStore(db)


@pytest.fixture
def sessions(db, orders):
    return SessionStore(db, orders)


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def sample_items():
    return [
        Item(id="k1", prompt="日", reading="にち", meaning="sun"),
        Item(id="k2", prompt="月", reading="げつ", meaning="moon"),
        Item(id="k3", prompt="火", reading="か", meaning="fire"),
        Item(id="k4", prompt="水", reading="すい", meaning="water"),
        Item(id="k5", prompt="木", reading="もく", meaning="tree"),
    ]


@pytest.fixture
def sample_set(sample_items):
    return ItemSet(level="N5", name="kata_benda_n5", items=sample_items)


@pytest.fixture
def three_item_set():
    return ItemSet(
        level="Dummy",
        name="test_soal_3",
        items=[
            Item(id="A", prompt="亜", reading="あ", meaning="a"),
            Item(id="B", prompt="伊", reading="い", meaning="b"),
            Item(id="C", prompt="宇", reading="", meaning="c"),
        ],
    )
