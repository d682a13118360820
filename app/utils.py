import math


def list_to_comma_string(lst):
    if lst is None:
        return None
    return ",".join([v.strip() for v in lst if v.strip()])


def comma_string_to_list(s):
    if s is None or s.strip() == "":
        return []
    return [v.strip() for v in s.split(",") if v.strip()]


def thumbnail_url(photos):
    if not photos:
        return None
    primary = next((p for p in photos if p.is_primary), None)
    return (primary or min(photos, key=lambda p: p.sort_order)).url


def page_offset(page, limit):
    return (page - 1) * limit


def pagination_meta(page, limit, total):
    return {
        "page": page,
        "limit": limit,
        "total": total or 0,
        "totalPages": math.ceil((total or 0) / limit) if limit else 0,
    }


def success_response(data=None, message=None):
    body = {"success": True, "data": data}
    if message:
        body["message"] = message
    return body


def paginated_response(data, page, limit, total):
    return {"success": True, "data": data, "pagination": pagination_meta(page, limit, total)}


def error_response(error):
    return {"success": False, "error": error}
