from __future__ import annotations

import os
import sys

import pytest

# Ensure the app package is importable when tests change directories
BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, BASE_DIR)

from app import create_app, db  # noqa: E402
from app.models import Customer  # noqa: E402


@pytest.fixture
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "testsecret")
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_PATH", raising=False)
    monkeypatch.delenv("PAGE_CACHE_ENABLED", raising=False)

    # Ensure a clean database for each test within the temp directory
    cwd = os.getcwd()
    os.chdir(tmp_path)
    app = create_app(["--demo"])
    os.chdir(cwd)

    app.config.update({"TESTING": True, "WTF_CSRF_ENABLED": False})

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def customers(app):
    """Two stored customers, returned as a name -> id mapping."""
    with app.app_context():
        evil = Customer(name="Evil Rabbit", email="evil@rabbit.com")
        lee = Customer(name="Lee Robinson", email="lee@robinson.com")
        db.session.add_all([evil, lee])
        db.session.commit()
        return {"evil": evil.id, "lee": lee.id}
