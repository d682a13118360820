import logging

import requests

from settings import get_api_base_url

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15


class ApiError(Exception):
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ApiClient:
    """Thin JSON client for the marketplace API.

    ``session`` is anything with a requests-style ``request`` method, a
    ``requests.Session`` by default. Every non-success answer, and every
    transport failure, surfaces as ``ApiError``.
    """

    def __init__(self, token=None, base_url=None, session=None, timeout=DEFAULT_TIMEOUT):
        self.token = token
        self.base_url = (get_api_base_url() if base_url is None else base_url).rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method, path, **kwargs):
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise ApiError(str(e)) from e
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        if resp.status_code >= 400 or body.get("success") is False:
            message = body.get("error") or f"Request failed with status {resp.status_code}"
            raise ApiError(message, resp.status_code)
        if "data" not in body:
            logger.warning(f"{method} {path} returned a body without data")
            raise ApiError("Unexpected response from server", resp.status_code)
        return body

    def get(self, path, **params):
        return self._request("GET", path, params={k: v for k, v in params.items() if v is not None})

    def post(self, path, json=None, **kwargs):
        return self._request("POST", path, json=json, **kwargs)

    def patch(self, path, json=None):
        return self._request("PATCH", path, json=json)

    def put(self, path, json=None):
        return self._request("PUT", path, json=json)

    def delete(self, path):
        return self._request("DELETE", path)

    # ---------- Admin ----------
    def admin_stats(self):
        return self.get("/api/admin/stats")["data"]

    def pending_campsites(self, page=1, limit=10, sort_by="submitted_at", sort_order="desc"):
        return self.get("/api/admin/campsites/pending", page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)

    def approve_campsite(self, campsite_id):
        return self.post(f"/api/admin/campsites/{campsite_id}/approve")

    def reject_campsite(self, campsite_id, reason):
        return self.post(f"/api/admin/campsites/{campsite_id}/reject", json={"rejection_reason": reason})

    def owner_requests(self, status="pending", page=1, limit=10):
        return self.get("/api/admin/owner-requests", status=status, page=page, limit=limit)

    def approve_owner_request(self, request_id):
        return self.post(f"/api/admin/owner-requests/{request_id}/approve")

    def reject_owner_request(self, request_id, reason):
        return self.post(f"/api/admin/owner-requests/{request_id}/reject", json={"rejection_reason": reason})

    def reported_reviews(self, page=1, limit=10, sort_by="report_count", min_reports=None):
        return self.get("/api/admin/reviews/reported", page=page, limit=limit, sort_by=sort_by,
                        min_reports=min_reports)

    def hide_review(self, review_id, reason):
        return self.post(f"/api/admin/reviews/{review_id}/hide", json={"hide_reason": reason})

    def unhide_review(self, review_id):
        return self.post(f"/api/admin/reviews/{review_id}/unhide")

    def delete_review(self, review_id):
        return self.delete(f"/api/admin/reviews/{review_id}")

    def dismiss_reports(self, review_id):
        return self.post(f"/api/admin/reviews/{review_id}/dismiss")

    # ---------- Dashboard ----------
    def create_campsite(self, payload):
        return self.post("/api/dashboard/campsites", json=payload)["data"]

    def update_campsite(self, campsite_id, payload):
        return self.patch(f"/api/dashboard/campsites/{campsite_id}", json=payload)["data"]

    def upload_photo(self, campsite_id, filename, content, content_type, alt_text=None, is_primary=False):
        data = {"is_primary": "true" if is_primary else "false"}
        if alt_text is not None:
            data["alt_text"] = alt_text
        return self.post(
            f"/api/dashboard/campsites/{campsite_id}/photos",
            files={"photo": (filename, content, content_type)},
            data=data,
        )["data"]

    def reorder_photos(self, campsite_id, order):
        return self.post(f"/api/dashboard/campsites/{campsite_id}/photos/reorder", json={"photos": order})["data"]

    def set_primary_photo(self, campsite_id, photo_id):
        return self.patch(f"/api/dashboard/campsites/{campsite_id}/photos/{photo_id}/primary")["data"]

    def delete_photo(self, campsite_id, photo_id):
        return self.delete(f"/api/dashboard/campsites/{campsite_id}/photos/{photo_id}")

    def inquiries(self, status=None, campsite_id=None, page=1, limit=10):
        return self.get("/api/dashboard/inquiries", status=status, campsite_id=campsite_id, page=page, limit=limit)

    def reply_inquiry(self, inquiry_id, reply):
        return self.post(f"/api/dashboard/inquiries/{inquiry_id}/reply", json={"reply": reply})["data"]

    # ---------- Public ----------
    def provinces(self):
        return self.get("/api/provinces")["data"]

    def report_review(self, review_id, reason, details=None):
        payload = {"reason": reason}
        if details:
            payload["details"] = details
        return self.post(f"/api/reviews/{review_id}/report", json=payload)["data"]

    def toggle_helpful(self, review_id):
        return self.post(f"/api/reviews/{review_id}/helpful")["data"]

    def wishlist(self):
        return self.get("/api/wishlist")["data"]

    def add_to_wishlist(self, campsite_id):
        return self.post("/api/wishlist", json={"campsite_id": campsite_id})["data"]

    def remove_from_wishlist(self, campsite_id):
        return self.delete(f"/api/wishlist/{campsite_id}")
