from __future__ import annotations

from service.ai.types import SOURCE_LOCAL, AnalysisResult


def test_from_payload_reads_service_fields() -> None:
    result = AnalysisResult.from_payload(
        {
            "danger": True,
            "direction": "Left",
            "confidence": 0.8,
            "slope_angle": 41.5,
            "class_name": "rockfall",
            "class_prob": 0.93,
        }
    )

    assert result.danger is True
    assert result.direction == "left"
    assert result.slope_angle == 41.5
    assert result.class_name == "rockfall"
    assert result.class_prob == 0.93
    assert result.invalid is False
    assert result.risk_percent == 100


def test_from_payload_is_lenient_with_bad_values() -> None:
    result = AnalysisResult.from_payload(
        {
            "danger": False,
            "direction": "up",
            "confidence": "n/a",
            "slope_angle": True,
            "class_prob": 1.7,
        }
    )

    assert result.direction is None
    assert result.confidence is None
    assert result.slope_angle is None
    assert result.class_prob == 1.0
    assert result.risk_percent == 0


def test_invalid_payload_discards_other_fields() -> None:
    result = AnalysisResult.from_payload({"invalid": True, "danger": True, "direction": "left"})

    assert result.invalid is True
    assert result.danger is False
    assert result.direction is None
    assert result.to_payload() == {"invalid": True}


def test_to_payload_omits_absent_fields() -> None:
    result = AnalysisResult(danger=True, direction="right", confidence=0.4, slope_angle=33, source=SOURCE_LOCAL)

    assert result.to_payload() == {
        "danger": True,
        "direction": "right",
        "confidence": 0.4,
        "slope_angle": 33,
    }
