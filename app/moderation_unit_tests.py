import pytest

from client_api import ApiError
from moderation import (
    DELETE_REVIEW_CONFIRMATION, DISMISS_CONFIRMATION, AdminBadges, ApprovalQueue, ConfirmPrompt, ReasonDialog,
    ReportedReviewQueue,
)
from toasts import Toaster
from utils import pagination_meta


class FakeAdminApi:
    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []
        self.stats = {"pending_campsites": 2, "pending_owner_requests": 1, "reported_reviews": 2}

    def _call(self, name, *args):
        self.calls.append((name,) + args)
        if self.fail:
            raise ApiError("Database error", 500)
        return {"success": True}

    def admin_stats(self):
        if self.fail:
            raise ApiError("Unauthorized", 401)
        return self.stats

    def _page(self, items, page, limit):
        if self.fail:
            raise ApiError("Failed to fetch", 500)
        return {"success": True, "data": items, "pagination": pagination_meta(page, limit, len(items))}

    def pending_campsites(self, page=1, limit=10):
        return self._page([{"id": 1, "name": "Camp A"}, {"id": 2, "name": "Camp B"}], page, limit)

    def owner_requests(self, status="pending", page=1, limit=10):
        return self._page([{"id": 5, "business_name": "Misty Hills"}], page, limit)

    def reported_reviews(self, page=1, limit=10):
        return self._page([{"id": 10, "report_count": 2}, {"id": 11, "report_count": 1}], page, limit)

    def approve_campsite(self, campsite_id):
        return self._call("approve_campsite", campsite_id)

    def reject_campsite(self, campsite_id, reason):
        return self._call("reject_campsite", campsite_id, reason)

    def approve_owner_request(self, request_id):
        return self._call("approve_owner_request", request_id)

    def reject_owner_request(self, request_id, reason):
        return self._call("reject_owner_request", request_id, reason)

    def hide_review(self, review_id, reason):
        return self._call("hide_review", review_id, reason)

    def dismiss_reports(self, review_id):
        return self._call("dismiss_reports", review_id)

    def delete_review(self, review_id):
        return self._call("delete_review", review_id)


@pytest.fixture
def api():
    return FakeAdminApi()


@pytest.fixture
def badges(api):
    badges = AdminBadges(api)
    badges.refresh()
    return badges


# ---------- ReasonDialog ----------

def test_reason_dialog_requires_minimum_length():
    dialog = ReasonDialog(10)
    dialog.open()
    dialog.set_reason("  short   ")
    assert dialog.can_confirm is False
    assert dialog.confirm() is None
    assert dialog.error == "Reason must be at least 10 characters"


def test_reason_dialog_clears_error_once_valid():
    dialog = ReasonDialog(10)
    dialog.set_reason("short")
    dialog.confirm()
    dialog.set_reason("still shrt")
    assert dialog.error is None
    assert dialog.confirm() == "still shrt"
    assert dialog.reason == ""


def test_reason_dialog_trims_and_enforces_max():
    dialog = ReasonDialog(5, max_length=20)
    dialog.set_reason("x" * 21)
    assert dialog.confirm() is None
    assert dialog.error == "Reason must be at most 20 characters"
    dialog.set_reason("   spam link   ")
    assert dialog.confirm() == "spam link"


def test_reason_dialog_cannot_close_while_loading():
    dialog = ReasonDialog()
    dialog.open()
    dialog.loading = True
    assert dialog.can_cancel is False
    assert dialog.close() is False
    assert dialog.is_open is True
    dialog.loading = False
    assert dialog.close() is True
    assert dialog.is_open is False


# ---------- AdminBadges ----------

def test_badges_refresh(badges):
    assert badges.counts == {"pending_campsites": 2, "pending_owner_requests": 1, "reported_reviews": 2}


def test_badges_default_to_zero_on_failure():
    badges = AdminBadges(FakeAdminApi(fail=True))
    assert badges.refresh() == {"pending_campsites": 0, "pending_owner_requests": 0, "reported_reviews": 0}


def test_badges_never_negative(badges):
    badges.set("reported_reviews", 0)
    badges.decrement("reported_reviews")
    assert badges.get("reported_reviews") == 0


# ---------- ApprovalQueue ----------

def test_approve_removes_item_and_decrements(api, badges):
    queue = ApprovalQueue(api, toaster=Toaster(), badges=badges)
    queue.load()
    assert queue.approve(1) is True
    assert queue.items.ids == [2]
    assert queue.pagination["total"] == 1
    assert badges.get("pending_campsites") == 1
    assert queue.toaster.last["description"] == "Campsite approved"
    assert api.calls == [("approve_campsite", 1)]


def test_approve_failure_restores_list_count_and_badge(api, badges):
    queue = ApprovalQueue(api, toaster=Toaster(), badges=badges)
    queue.load()
    api.fail = True
    assert queue.approve(1) is False
    assert queue.items.ids == [1, 2]
    assert queue.pagination["total"] == 2
    assert badges.get("pending_campsites") == 2
    assert queue.toaster.last == {"title": "Error", "description": "Failed to approve campsite",
                                  "variant": "destructive"}


def test_reject_flow(api, badges):
    queue = ApprovalQueue(api, toaster=Toaster(), badges=badges)
    queue.load()
    queue.start_reject(2)
    assert queue.dialog.is_open is True
    queue.dialog.set_reason("too short")
    assert queue.confirm_reject() is False
    assert api.calls == []

    queue.dialog.set_reason("  Photos are missing  ")
    assert queue.confirm_reject() is True
    assert api.calls == [("reject_campsite", 2, "Photos are missing")]
    assert queue.items.ids == [1]
    assert queue.dialog.is_open is False
    assert queue.rejecting is None


def test_reject_failure_keeps_dialog_open(api, badges):
    queue = ApprovalQueue(api, toaster=Toaster(), badges=badges)
    queue.load()
    queue.start_reject(1)
    queue.dialog.set_reason("Not a real campsite")
    api.fail = True
    assert queue.confirm_reject() is False
    assert queue.items.ids == [1, 2]
    assert queue.dialog.is_open is True
    assert queue.dialog.loading is False


def test_owner_request_queue(api, badges):
    queue = ApprovalQueue(api, kind="owner_requests", toaster=Toaster(), badges=badges)
    queue.load()
    assert queue.approve(5) is True
    assert badges.get("pending_owner_requests") == 0
    assert queue.toaster.last["description"] == "Owner request approved"


def test_unknown_queue_kind(api):
    with pytest.raises(ValueError):
        ApprovalQueue(api, kind="reviews")


def test_load_failure_sets_error():
    queue = ApprovalQueue(FakeAdminApi(fail=True))
    assert queue.load() is False
    assert queue.error == "Failed to fetch"


# ---------- ReportedReviewQueue ----------

def test_hide_review(api, badges):
    queue = ReportedReviewQueue(api, toaster=Toaster(), badges=badges, confirm=ConfirmPrompt(lambda m: True))
    queue.load()
    queue.start_hide(10)
    queue.dialog.set_reason("spam")
    assert queue.confirm_hide() is False
    queue.dialog.set_reason("spam links")
    assert queue.confirm_hide() is True
    assert api.calls == [("hide_review", 10, "spam links")]
    assert queue.items.ids == [11]
    assert badges.get("reported_reviews") == 1


def test_dismiss_requires_confirmation(api, badges):
    prompt = ConfirmPrompt(lambda m: False)
    queue = ReportedReviewQueue(api, toaster=Toaster(), badges=badges, confirm=prompt)
    queue.load()
    assert queue.dismiss(10) is False
    assert api.calls == []
    assert prompt.messages == [DISMISS_CONFIRMATION]


def test_delete_confirmed(api, badges):
    prompt = ConfirmPrompt(lambda m: True)
    queue = ReportedReviewQueue(api, toaster=Toaster(), badges=badges, confirm=prompt)
    queue.load()
    assert queue.delete(11) is True
    assert prompt.messages == [DELETE_REVIEW_CONFIRMATION]
    assert queue.items.ids == [10]
    assert queue.toaster.last["description"] == "Review deleted"


def test_dismiss_failure_rolls_back(api, badges):
    queue = ReportedReviewQueue(api, toaster=Toaster(), badges=badges, confirm=ConfirmPrompt(lambda m: True))
    queue.load()
    api.fail = True
    assert queue.dismiss(10) is False
    assert queue.items.ids == [10, 11]
    assert badges.get("reported_reviews") == 2
    assert queue.toaster.last["description"] == "Failed to dismiss reports"
