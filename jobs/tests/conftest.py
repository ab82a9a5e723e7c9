"""Fixtures for batch job tests.

Jobs get an explicit `--database-url` pointing at a temporary SQLite file;
the API modules they import still read settings, so those are pinned too.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest

from libs.common_python.common.db import make_engine
from services.api.app.models import ensure_tables


@pytest.fixture()
def db_url(tmp_path):
    url = f"sqlite:///{tmp_path / 'helm.db'}"
    engine = make_engine(url)
    ensure_tables(engine)
    engine.dispose()
    return url


@pytest.fixture()
def engine(db_url):
    eng = make_engine(db_url)
    yield eng
    eng.dispose()
