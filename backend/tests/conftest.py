from __future__ import annotations

import asyncio
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from notes_summarizer.app import create_app
from notes_summarizer.config import Settings
from notes_summarizer.db import SummaryStore
from notes_summarizer.errors import MailDeliveryError
from notes_summarizer.services.ai import GroqClient
from notes_summarizer.services.mailer import Mailer


class FakeGroq(GroqClient):
    """Provider stand-in: returns ``reply`` or raises ``error``."""

    def __init__(self, reply: str = "Generated summary.", error: Optional[Exception] = None, api_key: str = "test-key"):
        super().__init__(api_key=api_key)
        self.reply = reply
        self.error = error
        self.calls: List[List[Dict[str, str]]] = []

    def complete(self, messages, *, temperature=None, max_tokens=None) -> str:  # type: ignore[override]
        self.calls.append(messages)
        if not self.api_key:
            return super().complete(messages)
        if self.error is not None:
            raise self.error
        return self.reply


class FakeMailer(Mailer):
    def __init__(self, configured: bool = True, fail: bool = False):
        super().__init__(
            host="smtp.example.com" if configured else None,
            user="bot@example.com" if configured else None,
            password="secret" if configured else None,
        )
        self.fail = fail
        self.sent: List[Dict[str, object]] = []

    def send_summary(self, recipients, body, title) -> str:  # type: ignore[override]
        self._require_config()
        if self.fail:
            raise MailDeliveryError("relay refused")
        self.sent.append({"recipients": list(recipients), "body": body, "title": title})
        return f"<msg-{len(self.sent)}@example.com>"

    def test_connection(self):  # type: ignore[override]
        if not self.configured:
            return {"success": False, "error": "Email service not configured"}
        return {"success": True}



class LoopAwareStore(SummaryStore):
    """Records, per store call, whether it ran on the event loop thread."""

    def __init__(self, db_path) -> None:
        super().__init__(db_path)
        self.calls: List[tuple] = []

    def _note(self, name: str) -> None:
        try:
            asyncio.get_running_loop()
            self.calls.append((name, "event-loop"))
        except RuntimeError:
            self.calls.append((name, "worker-thread"))

    def create(self, **kwargs):  # type: ignore[override]
        self._note("create")
        return super().create(**kwargs)

    def get(self, summary_id):  # type: ignore[override]
        self._note("get")
        return super().get(summary_id)

    def record_shares(self, summary_id, emails):  # type: ignore[override]
        self._note("record_shares")
        return super().record_shares(summary_id, emails)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(db_path=str(tmp_path / "summaries.db"), groq_api_key="test-key")


@pytest.fixture
def store(tmp_path) -> SummaryStore:
    s = SummaryStore(tmp_path / "store.db")
    s.initialize()
    return s


@pytest.fixture
def groq() -> FakeGroq:
    return FakeGroq()


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def client(settings, groq, mailer) -> TestClient:
    app = create_app(settings, ai_client=groq, mailer=mailer)
    return TestClient(app)
