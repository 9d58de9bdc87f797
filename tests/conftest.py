import os
import tempfile
from types import SimpleNamespace

import pytest
import requests

_DB_DIR = tempfile.mkdtemp(prefix="quizgen-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"

from database import Base, SessionLocal, engine  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_tables():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


class FakeModel:
    """Stands in for the Gemini client: returns a canned response text."""

    def __init__(self, text):
        self.text = text
        self.prompts = []

    def generate_content(self, prompt):
        self.prompts.append(prompt)
        return SimpleNamespace(text=self.text)


@pytest.fixture
def fake_model_factory():
    return FakeModel


class FakeResponse:
    def __init__(self, text="", status_code=200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


@pytest.fixture
def fake_web(monkeypatch):
    """Serve canned pages instead of hitting the network: url -> (status, html)."""
    import scraper

    pages = {}
    calls = []

    def fake_get(url, **kwargs):
        calls.append(url)
        status, html = pages.get(url, (404, "not found"))
        return FakeResponse(html, status)

    monkeypatch.setattr(scraper.requests, "get", fake_get)
    return SimpleNamespace(pages=pages, calls=calls)
