from datetime import datetime
from types import SimpleNamespace
from xml.etree import ElementTree

import pytest

import models_sqlalchemy as models
import seo

SITE = "https://campingthailand.com"


def test_canonical_url_normalizes_path():
    assert seo.get_canonical_url("") == f"{SITE}/"
    assert seo.get_canonical_url("/") == f"{SITE}/"
    assert seo.get_canonical_url("search") == f"{SITE}/search"
    assert seo.get_canonical_url("/search/") == f"{SITE}/search"


def test_canonical_url_strips_only_one_trailing_slash():
    assert seo.get_canonical_url("/search//") == f"{SITE}/search/"


def test_canonical_url_uses_site_url(monkeypatch):
    monkeypatch.setenv("SITE_URL", "https://staging.campingthailand.com/")
    assert seo.get_canonical_url("/about") == "https://staging.campingthailand.com/about"


def test_entity_urls():
    assert seo.get_campsite_canonical_url(42) == f"{SITE}/campsites/42"
    assert seo.get_province_canonical_url("krabi") == f"{SITE}/provinces/krabi"
    assert seo.get_campsite_type_canonical_url("glamping") == f"{SITE}/types/glamping"
    assert seo.get_campsite_type_canonical_url(models.CampsiteType.rv_caravan) == f"{SITE}/types/rv-caravan"


def test_search_url_orders_params_and_drops_first_page():
    url = seo.get_search_canonical_url({"page": 1, "type": "camping", "q": "river view", "province": "nan"})
    assert url == f"{SITE}/search?q=river+view&province=nan&type=camping"
    assert seo.get_search_canonical_url({"q": "", "page": 3}) == f"{SITE}/search?page=3"
    assert seo.get_search_canonical_url() == f"{SITE}/search"


def test_pagination_urls_middle_page():
    urls = seo.get_pagination_urls("/provinces/krabi", 2, 3)
    assert urls == {
        "first": f"{SITE}/provinces/krabi",
        "last": f"{SITE}/provinces/krabi?page=3",
        "prev": f"{SITE}/provinces/krabi",
        "next": f"{SITE}/provinces/krabi?page=3",
    }


def test_pagination_urls_edges():
    first = seo.get_pagination_urls("/search", 1, 2)
    assert "prev" not in first
    assert first["next"] == f"{SITE}/search?page=2"
    last = seo.get_pagination_urls("/search", 2, 2)
    assert "next" not in last
    assert last["prev"] == f"{SITE}/search"


def test_alternate_urls():
    assert seo.get_alternate_urls("/campsites/1") == {
        "x-default": f"{SITE}/campsites/1",
        "th": f"{SITE}/campsites/1",
    }


def test_robots_txt_structure():
    lines = seo.generate_robots_txt().split("\n")
    assert lines[0] == "User-agent: *"
    assert lines[1] == "Allow: /"
    for path in ("/api/", "/admin/", "/dashboard/", "/auth/callback", "/auth/reset-password", "/_next/"):
        assert f"Disallow: {path}" in lines
    assert f"Host: {SITE}" in lines
    assert f"Sitemap: {SITE}/sitemap.xml" in lines
    for line in lines:
        assert line == "" or ": " in line


def test_sitemap_entries():
    now = datetime(2026, 1, 1)
    updated = datetime(2025, 12, 24, 8, 30)
    campsites = [SimpleNamespace(id=7, updated_at=updated)]
    provinces = [SimpleNamespace(slug="chiang-mai")]
    entries = seo.build_sitemap_entries(campsites, provinces, [models.CampsiteType.camping], now=now)
    by_url = {e["url"]: e for e in entries}

    assert by_url[SITE]["priority"] == 1.0
    assert by_url[SITE]["changeFrequency"] == "daily"
    assert by_url[f"{SITE}/search"]["priority"] == 0.9
    assert by_url[f"{SITE}/auth/login"]["changeFrequency"] == "monthly"
    assert by_url[f"{SITE}/types/camping"]["priority"] == 0.7
    assert by_url[f"{SITE}/campsites/7"]["lastModified"] == updated
    assert by_url[f"{SITE}/campsites/7"]["priority"] == 0.8
    assert by_url[f"{SITE}/provinces/chiang-mai"]["lastModified"] == now
    assert len(entries) == 7


def test_render_sitemap_xml_is_well_formed():
    entries = seo.build_sitemap_entries([], [], [], now=datetime(2026, 3, 1, 12, 0, 0))
    xml = seo.render_sitemap_xml(entries)
    assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    root = ElementTree.fromstring(xml.split("\n", 1)[1])
    ns = {"s": seo.SITEMAP_NS}
    urls = root.findall("s:url", ns)
    assert len(urls) == 4
    assert urls[0].find("s:loc", ns).text == SITE
    assert urls[0].find("s:lastmod", ns).text == "2026-03-01T12:00:00Z"
    assert urls[0].find("s:priority", ns).text == "1.0"


@pytest.mark.parametrize("page", ["abc", "", None, "2.5"])
def test_search_url_treats_unparseable_page_as_first(page):
    assert seo.get_search_canonical_url({"q": "tent", "page": page}) == f"{SITE}/search?q=tent"
