import threading

import pytest

from pagecraft import db
from pagecraft.llm import CompletionClient


class FakeCompletionClient(CompletionClient):
    """Returns canned replies (or raises canned errors) and records every call."""

    def __init__(self, replies=None, error=None):
        self.replies = list(replies or [])
        self.error = error
        self.calls = []

    def complete(self, history, user_turn):
        self.calls.append((list(history), user_turn))
        if self.error is not None:
            raise self.error
        return self.replies.pop(0) if self.replies else "No code this time."


class BlockingCompletionClient(CompletionClient):
    """Blocks until released; used to hold a request in flight."""

    def __init__(self, reply="done"):
        self.reply = reply
        self.started = threading.Event()
        self.release = threading.Event()

    def complete(self, history, user_turn):
        self.started.set()
        self.release.wait(timeout=5)
        return self.reply


PAGE_REPLY = (
    "Here is your landing page:\n"
    "```html\n<header>Acme</header>\n<img src=\"images/hero.png\">\n```\n"
    "And the styles:\n"
    "```css\nheader { color: red; }\n```\n"
    "Enjoy!"
)


@pytest.fixture(autouse=True)
def clean_db():
    db.clear()
    yield
    db.clear()


@pytest.fixture
def fake_client():
    return FakeCompletionClient(replies=[PAGE_REPLY])
