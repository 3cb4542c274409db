"""Tests for AnonymizerService — public operations and soft-fail behaviour."""

import pytest

from pii_bridge import AnonymizerService, MappingTable
from pii_bridge.exceptions import ConfigError
from pii_bridge.transforms import DEFAULT_TRANSFORMS, Replace
from pii_bridge.types import BEST, Span


def _service(fake_detector, fake_anonymizer, spans=None, **kwargs):
    return AnonymizerService(fake_detector(spans), fake_anonymizer(), **kwargs)


# ── anonymize ────────────────────────────────────────────────────────

def test_scenario_roundtrip(fake_detector, fake_anonymizer, scenario):
    text, spans = scenario
    service = _service(fake_detector, fake_anonymizer, spans)

    result = service.anonymize(text)

    assert result.anonymized_text == "Hello, my name is [PERSON] and my phone number is [PHONE]."
    assert result.entities_found is True
    assert service.deanonymize(result.anonymized_text) == text


def test_scenario_entities(fake_detector, fake_anonymizer, scenario):
    text, spans = scenario
    service = _service(fake_detector, fake_anonymizer, spans)
    service.anonymize(text)

    by_type = {e.category: e for e in service.list_entities()}
    assert by_type["PERSON"].original_value == "John Doe"
    assert by_type["PHONE_NUMBER"].original_value == "+1 555-123-4567"
    assert by_type["PHONE_NUMBER"].anonymized_value == "[PHONE]"


def test_no_entities_passes_text_through(fake_detector, fake_anonymizer):
    service = _service(fake_detector, fake_anonymizer, [])
    result = service.anonymize("The weather is nice today")
    assert result.anonymized_text == "The weather is nice today"
    assert result.entities_found is False
    assert service.anonymizer.calls == []


def test_roundtrip_distinct_categories(fake_detector, fake_anonymizer):
    text = "Jane Roe flew to Lisbon on 3 March for Acme Corp."
    spans = [
        Span("PERSON", 0, 8, 0.9),
        Span("LOCATION", 17, 23, 0.8),
        Span("DATE_TIME", 27, 34, 0.7),
        Span("ORGANIZATION", 39, 48, 0.6),
    ]
    service = _service(fake_detector, fake_anonymizer, spans)
    result = service.anonymize(text)
    assert result.anonymized_text == "[PERSON] flew to [LOCATION] on [DATE_TIME] for [ORGANIZATION]."
    assert service.deanonymize(result.anonymized_text) == text


def test_duplicate_detections_collapse(fake_detector, fake_anonymizer):
    text = "Call +1 555-123-4567 now"
    spans = [
        Span("PHONE_NUMBER", 5, 20, 0.75),
        Span("PHONE_NUMBER", 5, 20, 0.4),
        Span("PHONE_NUMBER", 8, 20, 0.5),
    ]
    service = _service(fake_detector, fake_anonymizer, spans)
    service.anonymize(text)
    entities = service.list_entities()
    assert len(entities) == 1
    assert entities[0].original_value == "+1 555-123-4567"
    assert ("PHONE_NUMBER", BEST) in service.table


def test_anonymize_clears_previous_mapping(fake_detector, fake_anonymizer, scenario):
    text, spans = scenario
    service = _service(fake_detector, fake_anonymizer, spans)
    service.anonymize(text)
    service.detector.spans = []
    service.anonymize("nothing here")
    assert service.list_entities() == []


def test_custom_transforms_flow_to_placeholders(fake_detector, fake_anonymizer):
    transforms = {**DEFAULT_TRANSFORMS, "PERSON": Replace("<<NAME>>")}
    service = _service(fake_detector, fake_anonymizer, [Span("PERSON", 0, 8, 0.9)],
                       transforms=transforms)
    result = service.anonymize("John Doe here")
    assert result.anonymized_text == "<<NAME>> here"
    assert service.deanonymize("Bye <<NAME>>") == "Bye John Doe"


def test_masked_category_uses_synthesized_placeholder(fake_detector, fake_anonymizer):
    service = _service(fake_detector, fake_anonymizer, [Span("EMAIL_ADDRESS", 0, 9, 0.9)])
    service.anonymize("a@b.com.au")
    [entry] = service.list_entities()
    assert entry.anonymized_value == "[EMAIL_ADDRESS]"


# ── soft-fail ────────────────────────────────────────────────────────

def test_detector_failure_falls_back(fake_detector, fake_anonymizer, detector_down):
    service = AnonymizerService(fake_detector(error=detector_down), fake_anonymizer())
    result = service.anonymize("My name is John Doe")
    assert result.anonymized_text == "My name is John Doe"
    assert result.entities_found is False


def test_anonymizer_failure_falls_back(fake_detector, fake_anonymizer, scenario, anonymizer_down):
    text, spans = scenario
    service = AnonymizerService(fake_detector(spans), fake_anonymizer(error=anonymizer_down))
    result = service.anonymize(text)
    assert result.anonymized_text == text
    assert result.entities_found is False
    assert service.list_entities() == []


def test_failure_after_success_leaves_no_stale_mapping(fake_detector, fake_anonymizer, scenario, detector_down):
    text, spans = scenario
    service = _service(fake_detector, fake_anonymizer, spans)
    service.anonymize(text)
    service.detector.error = detector_down
    service.anonymize(text)
    assert service.deanonymize("[PERSON]") == "[PERSON]"


def test_unexpected_detector_error_falls_back(fake_detector, fake_anonymizer):
    service = AnonymizerService(fake_detector(error=RuntimeError("boom")), fake_anonymizer())
    result = service.anonymize("My name is John Doe")
    assert result.anonymized_text == "My name is John Doe"
    assert result.entities_found is False
    assert service.list_entities() == []


def test_unexpected_anonymizer_error_falls_back(fake_detector, fake_anonymizer, scenario):
    text, spans = scenario
    service = AnonymizerService(fake_detector(spans), fake_anonymizer(error=KeyError("items")))
    result = service.anonymize(text)
    assert result.anonymized_text == text
    assert result.entities_found is False


def test_config_error_propagates(fake_detector, fake_anonymizer):
    service = AnonymizerService(fake_detector(error=ConfigError("bad language")), fake_anonymizer())
    with pytest.raises(ConfigError):
        service.anonymize("My name is John Doe")


# ── deanonymize / list / clear ───────────────────────────────────────

def test_deanonymize_without_mapping_is_identity(fake_detector, fake_anonymizer):
    service = _service(fake_detector, fake_anonymizer)
    assert service.deanonymize("Hi [PERSON]") == "Hi [PERSON]"


def test_list_entities_is_snapshot(fake_detector, fake_anonymizer, scenario):
    text, spans = scenario
    service = _service(fake_detector, fake_anonymizer, spans)
    service.anonymize(text)
    snapshot = service.list_entities()
    snapshot.clear()
    assert len(service.list_entities()) == 2


def test_clear_mapping(fake_detector, fake_anonymizer, scenario):
    text, spans = scenario
    service = _service(fake_detector, fake_anonymizer, spans)
    result = service.anonymize(text)
    service.clear_mapping()
    assert service.list_entities() == []
    assert service.deanonymize(result.anonymized_text) == result.anonymized_text
    assert service.stats == {"mapping_size": 0, "mappings": {}}


def test_caller_owned_table(fake_detector, fake_anonymizer, scenario):
    text, spans = scenario
    session = MappingTable()
    service = _service(fake_detector, fake_anonymizer, spans, table=session)
    service.anonymize(text)
    assert session.size == 2
    assert session.restore("[PERSON]") == "John Doe"
