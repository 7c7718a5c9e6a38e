import pytest

from sla_app.core.config import ThresholdSettings
from sla_app.core.models import SeverityBucket
from sla_app.core.thresholds import DEFAULT_THRESHOLDS, Thresholds, classify, severity_class


def test_default_cut_points():
    assert classify(30) is SeverityBucket.GREEN
    assert classify(24) is SeverityBucket.YELLOW
    assert classify(13) is SeverityBucket.YELLOW
    assert classify(12) is SeverityBucket.ORANGE
    assert classify(1.5) is SeverityBucket.ORANGE
    assert classify(1) is SeverityBucket.RED
    assert classify(-3) is SeverityBucket.RED


def test_violated_and_completed():
    assert classify(100, violated=True) is SeverityBucket.RED
    assert classify(100, completed=True, violated=True) is SeverityBucket.RED
    assert classify(5, completed=True) is None


def test_no_target_is_green():
    assert classify(None) is SeverityBucket.GREEN


def test_custom_thresholds_from_settings():
    thresholds = Thresholds.from_settings(ThresholdSettings(green_min=48, yellow_min=8, orange_min=2))
    assert classify(30, thresholds=thresholds) is SeverityBucket.YELLOW
    assert classify(5, thresholds=thresholds) is SeverityBucket.ORANGE


def test_thresholds_must_descend():
    with pytest.raises(ValueError):
        Thresholds(green_min=1, yellow_min=12, orange_min=24)


def test_severity_class():
    assert severity_class(SeverityBucket.ORANGE) == "sla-orange"
    assert severity_class(None) == ""
    assert SeverityBucket.RED.rank > SeverityBucket.GREEN.rank


def test_out_of_order_settings_use_default_thresholds():
    thresholds = Thresholds.from_settings(ThresholdSettings(green_min=1, yellow_min=12, orange_min=24))
    assert thresholds == DEFAULT_THRESHOLDS
    assert classify(13, thresholds=thresholds) is SeverityBucket.YELLOW
