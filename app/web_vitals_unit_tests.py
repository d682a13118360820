import logging
import time

import pytest
import requests

import web_vitals
from web_vitals import WEB_VITALS_THRESHOLDS, get_metric_rating

ENDPOINT = "https://analytics.example.com/collect"


@pytest.fixture
def beacons(monkeypatch):
    sent = []

    def fake_post(url, json=None, timeout=None):
        sent.append({"url": url, "json": json, "timeout": timeout})

    monkeypatch.setattr(web_vitals.requests, "post", fake_post)
    return sent


@pytest.fixture
def development(monkeypatch):
    monkeypatch.setenv("APP_ENV", "development")


def test_thresholds():
    assert WEB_VITALS_THRESHOLDS["LCP"] == {"good": 2500, "needsImprovement": 4000}
    assert WEB_VITALS_THRESHOLDS["FID"] == {"good": 100, "needsImprovement": 300}
    assert WEB_VITALS_THRESHOLDS["CLS"] == {"good": 0.1, "needsImprovement": 0.25}
    assert WEB_VITALS_THRESHOLDS["FCP"] == {"good": 1800, "needsImprovement": 3000}
    assert WEB_VITALS_THRESHOLDS["TTFB"] == {"good": 800, "needsImprovement": 1800}
    assert WEB_VITALS_THRESHOLDS["INP"] == {"good": 200, "needsImprovement": 500}


@pytest.mark.parametrize("name,value,expected", [
    ("LCP", 2000, "good"),
    ("LCP", 2500, "good"),
    ("LCP", 3000, "needs-improvement"),
    ("LCP", 4000, "needs-improvement"),
    ("LCP", 5000, "poor"),
    ("CLS", 0.1, "good"),
    ("CLS", 0.25, "needs-improvement"),
    ("CLS", 0.3, "poor"),
    ("UNKNOWN", 9999, "good"),
])
def test_metric_rating(name, value, expected):
    assert get_metric_rating(name, value) == expected


def test_report_logs_in_development(development, beacons, caplog):
    with caplog.at_level(logging.INFO, logger="web_vitals"):
        web_vitals.report_web_vitals({"name": "LCP", "value": 2000})
        web_vitals.report_web_vitals({"name": "FID", "value": 200})
        web_vitals.report_web_vitals({"name": "CLS", "value": 0.3})
    messages = [r.getMessage() for r in caplog.records]
    assert messages == [
        "[Web Vitals] ✅ LCP: 2000 (good)",
        "[Web Vitals] ⚠️ FID: 200 (needs-improvement)",
        "[Web Vitals] ❌ CLS: 0.3 (poor)",
    ]
    assert beacons == []


def test_report_is_quiet_outside_development(beacons, caplog):
    with caplog.at_level(logging.INFO, logger="web_vitals"):
        assert web_vitals.report_web_vitals({"name": "FCP", "value": 1500}) == "good"
    assert caplog.records == []


def test_report_sends_beacon_when_configured(monkeypatch, beacons):
    monkeypatch.setenv("ANALYTICS_ENDPOINT", ENDPOINT)
    before = int(time.time() * 1000)
    web_vitals.report_web_vitals({"name": "TTFB", "value": 700}, page="/test-page")
    after = int(time.time() * 1000)
    assert len(beacons) == 1
    payload = beacons[0]["json"]
    assert beacons[0]["url"] == ENDPOINT
    assert payload["name"] == "TTFB"
    assert payload["value"] == 700
    assert payload["rating"] == "good"
    assert payload["page"] == "/test-page"
    assert before <= payload["timestamp"] <= after


def test_beacon_failure_is_logged(monkeypatch, caplog):
    monkeypatch.setenv("ANALYTICS_ENDPOINT", ENDPOINT)

    def failing_post(*args, **kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(web_vitals.requests, "post", failing_post)
    with caplog.at_level(logging.WARNING, logger="web_vitals"):
        assert web_vitals.report_web_vitals({"name": "LCP", "value": 100}) == "good"
    assert "Failed to send analytics beacon" in caplog.text


def test_custom_metric(monkeypatch, beacons):
    monkeypatch.setenv("ANALYTICS_ENDPOINT", ENDPOINT)
    assert web_vitals.report_custom_metric("custom-metric", 1234, page="/custom-page") is True
    assert beacons[0]["json"]["type"] == "custom"
    assert beacons[0]["json"]["name"] == "custom-metric"
    assert beacons[0]["json"]["page"] == "/custom-page"


def test_custom_metric_without_endpoint(beacons):
    assert web_vitals.report_custom_metric("metric-name", 5678) is False
    assert beacons == []


def test_track_interaction(development, monkeypatch, beacons, caplog):
    monkeypatch.setenv("ANALYTICS_ENDPOINT", ENDPOINT)
    with caplog.at_level(logging.INFO, logger="web_vitals"):
        web_vitals.track_interaction("button-click", 123.456)
    assert "[Interaction] button-click: 123.46ms" in caplog.text
    assert beacons[0]["json"]["name"] == "interaction_button-click"


def test_measure_performance(development, monkeypatch, beacons, caplog):
    ticks = iter([1.0, 1.15])
    monkeypatch.setattr(web_vitals.time, "perf_counter", lambda: next(ticks))
    with caplog.at_level(logging.INFO, logger="web_vitals"):
        assert web_vitals.measure_performance("test-operation", lambda: "done") == "done"
    assert "[Performance] test-operation: 150.00ms" in caplog.text


def test_measure_performance_propagates_errors(development, caplog):
    def boom():
        raise ValueError("test error")

    with caplog.at_level(logging.INFO, logger="web_vitals"):
        with pytest.raises(ValueError):
            web_vitals.measure_performance("failing-operation", boom)
    assert "[Performance] failing-operation" in caplog.text
