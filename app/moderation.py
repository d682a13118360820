import logging
from functools import partial

from client_api import ApiError
from models_pydantic import HIDE_REASON_MIN, REASON_MAX, REJECTION_REASON_MIN
from optimistic import OptimisticList
from toasts import Toaster
from utils import pagination_meta

logger = logging.getLogger(__name__)

DISMISS_CONFIRMATION = "Are you sure you want to dismiss all reports? The review will remain visible."
DELETE_REVIEW_CONFIRMATION = "Are you sure you want to permanently delete this review? This cannot be undone."


class ConfirmPrompt:
    """Blocking yes/no prompt; ``answer`` receives the message and returns a bool."""

    def __init__(self, answer=None):
        self._answer = answer or self._ask
        self.messages = []

    @staticmethod
    def _ask(message):
        return input(f"{message} [y/N] ").strip().lower() in ("y", "yes")

    def __call__(self, message):
        self.messages.append(message)
        return bool(self._answer(message))


class ReasonDialog:
    def __init__(self, min_length=REJECTION_REASON_MIN, max_length=REASON_MAX):
        self.min_length = min_length
        self.max_length = max_length
        self.is_open = False
        self.reason = ""
        self.error = None
        self.loading = False

    def _validate(self):
        trimmed = self.reason.strip()
        if len(trimmed) < self.min_length:
            return f"Reason must be at least {self.min_length} characters"
        if len(trimmed) > self.max_length:
            return f"Reason must be at most {self.max_length} characters"
        return None

    def open(self):
        self.is_open = True

    def set_reason(self, value):
        self.reason = value
        # an error shown earlier goes away as soon as the text satisfies the rule
        if self.error and self._validate() is None:
            self.error = None

    @property
    def can_confirm(self):
        return not self.loading and self._validate() is None

    @property
    def can_cancel(self):
        return not self.loading

    def confirm(self):
        if self.loading:
            return None
        self.error = self._validate()
        if self.error:
            return None
        trimmed = self.reason.strip()
        self.reason = ""
        return trimmed

    def close(self):
        if self.loading:
            return False
        self.reason = ""
        self.error = None
        self.is_open = False
        return True


class AdminBadges:
    KEYS = ("pending_campsites", "pending_owner_requests", "reported_reviews")

    def __init__(self, api):
        self.api = api
        self.counts = {k: 0 for k in self.KEYS}

    def refresh(self):
        try:
            stats = self.api.admin_stats()
        except ApiError as e:
            logger.warning(f"Failed to load admin badge counts: {e.message}")
            self.counts = {k: 0 for k in self.KEYS}
            return self.counts
        if not isinstance(stats, dict):
            logger.warning("Admin badge counts missing from response")
            stats = {}
        self.counts = {k: int(stats.get(k) or 0) for k in self.KEYS}
        return self.counts

    def get(self, key):
        return self.counts.get(key, 0)

    def set(self, key, value):
        self.counts[key] = max(0, value)

    def decrement(self, key):
        self.set(key, self.get(key) - 1)


class _ModerationQueue:
    badge_key = None
    load_error = "Failed to load items"

    def __init__(self, api, toaster=None, badges=None, limit=10):
        self.api = api
        self.toaster = toaster or Toaster()
        self.badges = badges
        self.items = OptimisticList(toaster=self.toaster)
        self.pagination = pagination_meta(1, limit, 0)
        self.error = None

    @property
    def busy(self):
        return self.items.busy

    def _fetch(self, page, limit):
        raise NotImplementedError

    def load(self, page=1):
        try:
            body = self._fetch(page, self.pagination["limit"])
        except ApiError as e:
            self.error = e.message or self.load_error
            return False
        self.error = None
        self.items.replace(body["data"])
        self.pagination = body["pagination"]
        return True

    def _remove(self, item_id, request, success_message, error_message):
        pagination_before = dict(self.pagination)
        badge_before = self.badges.get(self.badge_key) if self.badges else None

        def apply(items):
            p = pagination_before
            self.pagination = pagination_meta(p["page"], p["limit"], max(0, p["total"] - 1))
            if self.badges:
                self.badges.decrement(self.badge_key)
            return [i for i in items if i["id"] != item_id]

        def rollback():
            self.pagination = pagination_before
            if self.badges:
                self.badges.set(self.badge_key, badge_before)

        return self.items.mutate(
            apply, request,
            item_id=item_id,
            success_message=success_message,
            error_message=error_message,
            on_rollback=rollback,
        )


class ApprovalQueue(_ModerationQueue):
    """Pending campsites or pending owner requests awaiting approve/reject."""

    LABELS = {"campsites": "Campsite", "owner_requests": "Owner request"}
    BADGES = {"campsites": "pending_campsites", "owner_requests": "pending_owner_requests"}

    def __init__(self, api, kind="campsites", toaster=None, badges=None, limit=10):
        super().__init__(api, toaster=toaster, badges=badges, limit=limit)
        if kind not in self.LABELS:
            raise ValueError(f"Unknown approval queue: {kind}")
        self.kind = kind
        self.badge_key = self.BADGES[kind]
        self.label = self.LABELS[kind]
        self.load_error = f"Failed to load {kind.replace('_', ' ')}"
        self.dialog = ReasonDialog(REJECTION_REASON_MIN)
        self.rejecting = None

    def _fetch(self, page, limit):
        if self.kind == "campsites":
            return self.api.pending_campsites(page=page, limit=limit)
        return self.api.owner_requests(status="pending", page=page, limit=limit)

    def approve(self, item_id):
        if self.kind == "campsites":
            request = partial(self.api.approve_campsite, item_id)
        else:
            request = partial(self.api.approve_owner_request, item_id)
        return self._remove(item_id, request, f"{self.label} approved",
                            f"Failed to approve {self.label.lower()}")

    def start_reject(self, item_id):
        self.rejecting = item_id
        self.dialog.open()

    def confirm_reject(self):
        if self.busy:
            return False
        item_id = self.rejecting
        reason = self.dialog.confirm()
        if reason is None or item_id is None:
            return False
        if self.kind == "campsites":
            request = partial(self.api.reject_campsite, item_id, reason)
        else:
            request = partial(self.api.reject_owner_request, item_id, reason)
        self.dialog.loading = True
        try:
            ok = self._remove(item_id, request, f"{self.label} rejected", f"Failed to reject {self.label.lower()}")
        finally:
            self.dialog.loading = False
        if ok:
            self.rejecting = None
            self.dialog.close()
        return ok


class ReportedReviewQueue(_ModerationQueue):
    badge_key = "reported_reviews"
    load_error = "Failed to load reported reviews"

    def __init__(self, api, toaster=None, badges=None, confirm=None, limit=10):
        super().__init__(api, toaster=toaster, badges=badges, limit=limit)
        self.confirm = confirm or ConfirmPrompt()
        self.dialog = ReasonDialog(HIDE_REASON_MIN)
        self.hiding = None

    def _fetch(self, page, limit):
        return self.api.reported_reviews(page=page, limit=limit)

    def start_hide(self, review_id):
        self.hiding = review_id
        self.dialog.open()

    def confirm_hide(self):
        if self.busy:
            return False
        review_id = self.hiding
        reason = self.dialog.confirm()
        if reason is None or review_id is None:
            return False
        self.dialog.loading = True
        try:
            ok = self._remove(review_id, partial(self.api.hide_review, review_id, reason),
                              "Review hidden", "Failed to hide review")
        finally:
            self.dialog.loading = False
        if ok:
            self.hiding = None
            self.dialog.close()
        return ok

    def dismiss(self, review_id):
        if not self.confirm(DISMISS_CONFIRMATION):
            return False
        return self._remove(review_id, partial(self.api.dismiss_reports, review_id),
                            "Reports dismissed", "Failed to dismiss reports")

    def delete(self, review_id):
        if not self.confirm(DELETE_REVIEW_CONFIRMATION):
            return False
        return self._remove(review_id, partial(self.api.delete_review, review_id),
                            "Review deleted", "Failed to delete review")
