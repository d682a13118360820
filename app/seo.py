from datetime import datetime
from urllib.parse import urlencode
from xml.etree import ElementTree

from settings import get_site_url

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"

ROBOTS_DISALLOW = [
    "/api/",
    "/admin/",
    "/dashboard/",
    "/auth/callback",
    "/auth/reset-password",
    "/_next/",
]

SEARCH_PARAMS = ("q", "province", "type", "page")


# ---------- Canonical URLs ----------

def get_canonical_url(path=""):
    if not path:
        path = "/"
    if not path.startswith("/"):
        path = "/" + path
    # only a single trailing slash is dropped, and never from the root
    if path != "/" and path.endswith("/"):
        path = path[:-1]
    return f"{get_site_url()}{path}"


def get_campsite_canonical_url(campsite_id):
    return get_canonical_url(f"/campsites/{campsite_id}")


def get_province_canonical_url(slug):
    return get_canonical_url(f"/provinces/{slug}")


def get_campsite_type_canonical_url(campsite_type):
    return get_canonical_url(f"/types/{getattr(campsite_type, 'value', campsite_type)}")


def _page_number(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return 1


def get_search_canonical_url(params=None):
    params = params or {}
    query = []
    for key in SEARCH_PARAMS:
        value = params.get(key)
        if value is None or value == "":
            continue
        if key == "page" and _page_number(value) <= 1:
            continue
        query.append((key, value))
    if not query:
        return get_canonical_url("/search")
    return get_canonical_url(f"/search?{urlencode(query)}")


def _page_url(base_url, page):
    if page <= 1:
        return base_url
    return f"{base_url}?page={page}"


def get_pagination_urls(base_path, current_page, total_pages):
    base_url = get_canonical_url(base_path)
    urls = {
        "first": base_url,
        "last": _page_url(base_url, total_pages),
    }
    if current_page > 1:
        urls["prev"] = _page_url(base_url, current_page - 1)
    if current_page < total_pages:
        urls["next"] = _page_url(base_url, current_page + 1)
    return urls


def get_alternate_urls(path):
    url = get_canonical_url(path)
    return {"x-default": url, "th": url}


# ---------- robots.txt ----------

def generate_robots_txt():
    site = get_site_url()
    lines = ["User-agent: *", "Allow: /"]
    lines += [f"Disallow: {p}" for p in ROBOTS_DISALLOW]
    lines += ["", f"Host: {site}", f"Sitemap: {site}/sitemap.xml", ""]
    return "\n".join(lines)


# ---------- sitemap.xml ----------

def _entry(url, lastmod, changefreq, priority):
    return {"url": url, "lastModified": lastmod, "changeFrequency": changefreq, "priority": priority}


def build_sitemap_entries(campsites, provinces, campsite_types, now=None):
    """Collect sitemap entries for the static pages, campsite types,
    approved campsites and provinces.

    ``campsites`` need ``id`` and ``updated_at``; ``provinces`` need ``slug``
    and optionally ``updated_at``.
    """
    now = now or datetime.utcnow()
    site = get_site_url()
    entries = [
        _entry(site, now, "daily", 1.0),
        _entry(get_canonical_url("/search"), now, "daily", 0.9),
        _entry(get_canonical_url("/auth/login"), now, "monthly", 0.3),
        _entry(get_canonical_url("/auth/signup"), now, "monthly", 0.3),
    ]
    entries += [_entry(get_campsite_type_canonical_url(t), now, "weekly", 0.7) for t in campsite_types]
    entries += [
        _entry(get_campsite_canonical_url(c.id), c.updated_at or now, "weekly", 0.8)
        for c in campsites
    ]
    entries += [
        _entry(get_province_canonical_url(p.slug), getattr(p, "updated_at", None) or now, "weekly", 0.6)
        for p in provinces
    ]
    return entries


def render_sitemap_xml(entries):
    ElementTree.register_namespace("", SITEMAP_NS)
    urlset = ElementTree.Element(f"{{{SITEMAP_NS}}}urlset")
    for e in entries:
        url = ElementTree.SubElement(urlset, f"{{{SITEMAP_NS}}}url")
        ElementTree.SubElement(url, f"{{{SITEMAP_NS}}}loc").text = e["url"]
        ElementTree.SubElement(url, f"{{{SITEMAP_NS}}}lastmod").text = e["lastModified"].strftime("%Y-%m-%dT%H:%M:%SZ")
        ElementTree.SubElement(url, f"{{{SITEMAP_NS}}}changefreq").text = e["changeFrequency"]
        ElementTree.SubElement(url, f"{{{SITEMAP_NS}}}priority").text = f"{e['priority']:.1f}"
    body = ElementTree.tostring(urlset, encoding="unicode")
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + body
