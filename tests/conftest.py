# tests/conftest.py
import pytest

from src.ner.models import TaggedToken
from src.ner.recognizer import BaseTagger, ModelInferenceError


def tok(tag, text, confidence=0.9, index=1, continuation=False):
    """Shorthand for a tagger token: tok("B-ORG", "Acme", 0.98, index=1)."""
    return TaggedToken.from_tag(tag, text=text, confidence=confidence,
                                is_continuation=continuation, index=index)


class FakeTagger(BaseTagger):
    """Scripted tagger: text -> token list, unknown text -> no tokens."""

    def __init__(self, script=None, fail_on=()):
        self.script = dict(script or {})
        self.fail_on = set(fail_on)
        self.calls = []

    async def tag(self, text):
        self.calls.append(text)
        if text in self.fail_on:
            raise ModelInferenceError(f"Tagging failed for {text!r}")
        return list(self.script.get(text, []))


CARD_LINES = [
    "John Smith",
    "Senior Software Engineer",
    "Acme Corp",
    "123 Main Street, Sector 5",
    "john@acme.com +1-555-123-4567",
]


@pytest.fixture
def card_tagger():
    return FakeTagger({
        "John Smith": [tok("B-PER", "John", 0.99, 1), tok("I-PER", "Smith", 0.98, 2)],
        "Senior Software Engineer": [tok("B-MISC", "Software", 0.41, 2)],
        "Acme Corp": [tok("B-ORG", "Acme", 0.97, 1), tok("I-ORG", "Corp", 0.93, 2)],
        "123 Main Street, Sector 5": [tok("B-LOC", "Main", 0.88, 2),
                                      tok("I-LOC", "Street", 0.81, 3)],
        "john@acme.com +1-555-123-4567": [tok("B-ORG", "acme", 0.52, 3)],
    })
