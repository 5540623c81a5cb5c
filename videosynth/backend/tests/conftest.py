import os
import tempfile
from pathlib import Path

import pytest

# Settings are read at import time, so point them at scratch space first.
_TMP = Path(tempfile.mkdtemp(prefix="promptvid_tests_"))
os.environ["DATABASE_URL"] = f"sqlite:///{(_TMP / 'test.db').as_posix()}"
os.environ["ASSETS_DIR"] = str(_TMP / "assets")
os.environ["REDIS_URL"] = "redis://127.0.0.1:1/0"

from promptvid.animation.blueprint import build_scene  # noqa: E402

SCENARIO_PROMPT = "dreamlike neon cityscape"


@pytest.fixture(scope="session")
def scenario_blueprint():
    return build_scene(SCENARIO_PROMPT)


@pytest.fixture(scope="session")
def default_blueprint():
    return build_scene("")


@pytest.fixture
def client(monkeypatch):
    from fastapi.testclient import TestClient

    from promptvid.main import app
    from promptvid.routes import videos

    # No broker in tests: always take the inline path
    monkeypatch.setattr(videos, "_worker_alive", lambda: False)
    with TestClient(app) as c:
        yield c
