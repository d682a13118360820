import logging
import time

import requests

from settings import get_analytics_endpoint, is_development

logger = logging.getLogger(__name__)

BEACON_TIMEOUT = 5

WEB_VITALS_THRESHOLDS = {
    "LCP": {"good": 2500, "needsImprovement": 4000},
    "FID": {"good": 100, "needsImprovement": 300},
    "CLS": {"good": 0.1, "needsImprovement": 0.25},
    "FCP": {"good": 1800, "needsImprovement": 3000},
    "TTFB": {"good": 800, "needsImprovement": 1800},
    "INP": {"good": 200, "needsImprovement": 500},
}

RATING_EMOJI = {"good": "✅", "needs-improvement": "⚠️", "poor": "❌"}


def get_metric_rating(name, value):
    thresholds = WEB_VITALS_THRESHOLDS.get(name)
    if thresholds is None:
        return "good"
    if value <= thresholds["good"]:
        return "good"
    if value <= thresholds["needsImprovement"]:
        return "needs-improvement"
    return "poor"


def _timestamp():
    return int(time.time() * 1000)


def _send(payload):
    endpoint = get_analytics_endpoint()
    if not endpoint:
        return False
    try:
        requests.post(endpoint, json=payload, timeout=BEACON_TIMEOUT)
    except requests.RequestException as e:
        logger.warning(f"Failed to send analytics beacon: {e}")
        return False
    return True


def report_web_vitals(metric, page="/"):
    """Rate a ``{"name", "value"}`` metric, log it in development and beacon it when an endpoint is set."""
    name, value = metric["name"], metric["value"]
    rating = get_metric_rating(name, value)
    if is_development():
        logger.info(f"[Web Vitals] {RATING_EMOJI[rating]} {name}: {value} ({rating})")
    _send({
        "name": name,
        "value": value,
        "rating": rating,
        "page": page,
        "timestamp": _timestamp(),
    })
    return rating


def report_custom_metric(name, value, page="/"):
    return _send({
        "name": name,
        "value": value,
        "page": page,
        "timestamp": _timestamp(),
        "type": "custom",
    })


def track_interaction(name, duration, page="/"):
    if is_development():
        logger.info(f"[Interaction] {name}: {duration:.2f}ms")
    report_custom_metric(f"interaction_{name}", duration, page=page)


def measure_performance(name, fn, page="/"):
    start = time.perf_counter()
    try:
        return fn()
    finally:
        duration = (time.perf_counter() - start) * 1000
        if is_development():
            logger.info(f"[Performance] {name}: {duration:.2f}ms")
        report_custom_metric(name, duration, page=page)
