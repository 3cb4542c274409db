"""Shared fakes for the detector and anonymizer collaborators."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import pytest

from pii_bridge.exceptions import AnonymizerError, DetectorError
from pii_bridge.transforms import Replace
from pii_bridge.types import AnonymizerResponse, AppliedItem, Span


class FakeDetector:
    """Returns canned spans; optionally raises."""

    def __init__(self, spans=None, error=None):
        self.spans = list(spans or [])
        self.error = error
        self.calls = []

    def analyze(self, text):
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return list(self.spans)


class FakeAnonymizer:
    """Replaces spans right-to-left the way Presidio's replace operator does."""

    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def anonymize(self, text, spans, transforms):
        self.calls.append((text, spans))
        if self.error is not None:
            raise self.error
        items = []
        out = text
        for span in sorted(spans, key=lambda s: s.start, reverse=True):
            t = transforms.get(span.category) or transforms.get("DEFAULT")
            if isinstance(t, Replace):
                new, operator = t.new_value, "replace"
            else:
                new, operator = "#" * span.length, "mask"
            out = out[:span.start] + new + out[span.end:]
            items.append(AppliedItem(span.category, span.start, span.start + len(new), new, operator))
        return AnonymizerResponse(text=out, items=list(reversed(items)))


SCENARIO_TEXT = "Hello, my name is John Doe and my phone number is +1 555-123-4567."
SCENARIO_SPANS = [
    Span("PERSON", 18, 26, 0.9),
    Span("PHONE_NUMBER", 50, 65, 0.8),
]


@pytest.fixture
def fake_detector():
    return FakeDetector


@pytest.fixture
def fake_anonymizer():
    return FakeAnonymizer


@pytest.fixture
def scenario():
    return SCENARIO_TEXT, list(SCENARIO_SPANS)


@pytest.fixture
def detector_down():
    return DetectorError("Presidio analyzer service is unavailable", status_code=503)


@pytest.fixture
def anonymizer_down():
    return AnonymizerError("anonymizer returned HTTP 500", status_code=500)
