import pytest
import requests

import models_sqlalchemy as models
from client_api import ApiClient, ApiError
from inquiry_reply import InquiryReplyForm
from moderation import AdminBadges
from photo_manager import PhotoManager
from report_review import SUBMIT_FAILED, ReportReviewForm
from toasts import Toaster
from wishlist import WishlistToggle


@pytest.fixture
def camper_api(client, camper):
    return ApiClient(token=camper.access_token, base_url="", session=client)


# ---------- ApiClient ----------

def test_client_sends_bearer_token(client, camper):
    api = ApiClient(token=camper.access_token, base_url="", session=client)
    assert api.wishlist() == []


def test_client_raises_api_error_with_server_message(client):
    api = ApiClient(base_url="", session=client)
    with pytest.raises(ApiError) as exc:
        api.wishlist()
    assert exc.value.status_code == 401
    assert exc.value.message == "Unauthorized"


def test_client_wraps_transport_errors():
    class OfflineSession:
        def request(self, *args, **kwargs):
            raise requests.ConnectionError("Network down")

    api = ApiClient(base_url="http://api.invalid", session=OfflineSession())
    with pytest.raises(ApiError) as exc:
        api.provinces()
    assert exc.value.status_code is None
    assert "Network down" in exc.value.message


def test_client_end_to_end_moderation(client, admin, make_campsite):
    pending = make_campsite(status=models.ApprovalStatus.pending)
    api = ApiClient(token=admin.access_token, base_url="", session=client)
    assert api.admin_stats()["pending_campsites"] == 1
    assert api.pending_campsites()["pagination"]["total"] == 1
    api.reject_campsite(pending.id, "Location pin is in the sea")
    assert api.admin_stats()["pending_campsites"] == 0
    with pytest.raises(ApiError) as exc:
        api.approve_campsite(pending.id)
    assert exc.value.status_code == 404


def test_client_uploads_photo(client, owner, make_campsite):
    campsite = make_campsite()
    api = ApiClient(token=owner.access_token, base_url="", session=client)
    photo = api.upload_photo(campsite.id, "view.jpg", b"\xff\xd8\xff", "image/jpeg", alt_text="view",
                             is_primary=True)
    assert photo["is_primary"] is True
    assert photo["alt_text"] == "view"
    assert api.set_primary_photo(campsite.id, photo["id"])["id"] == photo["id"]


# ---------- WishlistToggle ----------

def test_wishlist_toggle_round_trip(camper_api, make_campsite):
    campsite = make_campsite()
    wishlist = WishlistToggle(camper_api, toaster=Toaster())
    assert wishlist.load() is True
    assert wishlist.toggle(campsite.id) is True
    assert wishlist.is_saved(campsite.id) is True
    assert wishlist.count == 1
    assert wishlist.items.get(campsite.id)["campsite_name"] == campsite.name

    assert wishlist.toggle(campsite.id) is True
    assert wishlist.is_saved(campsite.id) is False
    assert camper_api.wishlist() == []


def test_wishlist_add_failure_reverts(camper_api, make_campsite):
    pending = make_campsite(status=models.ApprovalStatus.pending)
    wishlist = WishlistToggle(camper_api, toaster=Toaster())
    assert wishlist.add(pending.id) is False
    assert wishlist.count == 0
    assert wishlist.toaster.last["description"] == "Failed to add to wishlist"


def test_wishlist_requires_login(client, make_campsite):
    wishlist = WishlistToggle(ApiClient(base_url="", session=client), toaster=Toaster())
    assert wishlist.load() is False
    assert wishlist.add(make_campsite().id) is False
    assert wishlist.toaster.last["description"] == "Please log in to save to wishlist"


# ---------- InquiryReplyForm ----------

class FakeInquiryApi:
    def __init__(self, fail=False):
        self.fail = fail
        self.replies = []

    def reply_inquiry(self, inquiry_id, reply):
        if self.fail:
            raise ApiError("Failed to send notification", 502)
        self.replies.append((inquiry_id, reply))
        return {"id": inquiry_id, "owner_reply": reply, "status": "in_progress"}


def test_reply_validation():
    form = InquiryReplyForm(FakeInquiryApi(), {"id": 1, "status": "new"}, toaster=Toaster())
    form.set_reply("Thanks")
    assert form.can_send is False
    assert form.send() is False
    assert form.error == "Reply must be at least 10 characters"
    form.set_reply("Thanks, we have space that weekend.")
    assert form.error is None


def test_reply_success_updates_inquiry():
    api = FakeInquiryApi()
    form = InquiryReplyForm(api, {"id": 4, "status": "new", "owner_reply": None}, toaster=Toaster())
    form.set_reply("  Yes, two pitches are free.  ")
    assert form.send() is True
    assert api.replies == [(4, "Yes, two pitches are free.")]
    assert form.inquiry["status"] == "in_progress"
    assert form.inquiry["owner_reply"] == "Yes, two pitches are free."
    assert form.reply == ""
    assert form.toaster.last["description"] == "Reply sent successfully"


def test_reply_failure_keeps_text():
    form = InquiryReplyForm(FakeInquiryApi(fail=True), {"id": 4, "status": "new"}, toaster=Toaster())
    form.set_reply("Yes, two pitches are free.")
    assert form.send() is False
    assert form.reply == "Yes, two pitches are free."
    assert form.inquiry["status"] == "new"
    assert form.sending is False
    assert form.toaster.last["variant"] == "destructive"


def test_reply_against_api(client, owner, make_campsite):
    campsite = make_campsite()
    guest = ApiClient(base_url="", session=client)
    inquiry = guest.post("/api/inquiries", json={
        "campsite_id": campsite.id,
        "guest_name": "Nok",
        "guest_email": "nok@example.com",
        "message": "Is the campsite open during the rainy season?",
    })["data"]
    form = InquiryReplyForm(ApiClient(token=owner.access_token, base_url="", session=client), inquiry,
                            toaster=Toaster())
    form.set_reply("Yes, we stay open all year round.")
    assert form.send() is True
    assert form.inquiry["status"] == "in_progress"
    assert form.inquiry["replied_at"] is not None


# ---------- Malformed answers ----------

class StubResponse:
    def __init__(self, body, status_code=200):
        self.body = body
        self.status_code = status_code

    def json(self):
        return self.body


class StubSession:
    def __init__(self, body, status_code=200):
        self.response = StubResponse(body, status_code)

    def request(self, *args, **kwargs):
        return self.response


@pytest.mark.parametrize("body", [{"success": True}, ["not", "an", "object"], None])
def test_client_rejects_success_without_data(body):
    api = ApiClient(base_url="http://api.invalid", session=StubSession(body))
    with pytest.raises(ApiError) as exc:
        api.provinces()
    assert exc.value.status_code == 200


def test_photo_manager_rolls_back_on_body_without_data():
    photos = [
        {"id": 1, "url": "/media/a.jpg", "sort_order": 0, "is_primary": True},
        {"id": 2, "url": "/media/b.jpg", "sort_order": 1, "is_primary": False},
    ]
    api = ApiClient(token="owner-token", base_url="http://api.invalid", session=StubSession({"success": True}))
    manager = PhotoManager(api, 7, photos=photos, toaster=Toaster())
    before = [dict(p) for p in manager.items]
    assert manager.set_primary(2) is False
    assert manager.items == before
    assert manager.toaster.last["description"] == "Failed to set primary photo"


def test_admin_badges_survive_body_without_data():
    api = ApiClient(token="admin-token", base_url="http://api.invalid", session=StubSession({"success": True}))
    badges = AdminBadges(api)
    assert badges.refresh() == {"pending_campsites": 0, "pending_owner_requests": 0, "reported_reviews": 0}


# ---------- ReportReviewForm ----------

def test_report_form_requires_reason():
    form = ReportReviewForm(FakeInquiryApi(), 3, toaster=Toaster())
    form.open()
    assert form.can_submit is False
    assert form.submit() is False
    assert form.error == "Please select a reason"
    form.select_reason("spam")
    assert form.error is None
    assert form.reason is models.ReportReason.spam
    with pytest.raises(ValueError):
        form.select_reason("boring")


def test_report_form_caps_details():
    form = ReportReviewForm(FakeInquiryApi(), 3, toaster=Toaster())
    form.set_details("x" * 600)
    assert len(form.details) == 500
    assert form.details_remaining == 0


def test_duplicate_report_shows_generic_failure(client, owner, camper, make_campsite, make_review):
    review = make_review(make_campsite(), owner)
    api = ApiClient(token=camper.access_token, base_url="", session=client)
    reported = []

    form = ReportReviewForm(api, review.id, toaster=Toaster(), reported=reported)
    form.open()
    form.select_reason(models.ReportReason.fake)
    form.set_details("  Never stayed here  ")
    assert form.submit() is True
    assert form.is_open is False
    assert reported == [review.id]

    again = ReportReviewForm(api, review.id, toaster=Toaster(), reported=reported)
    again.open()
    again.select_reason("spam")
    assert again.submit() is False
    assert again.error == SUBMIT_FAILED
    assert again.toaster.last == {"title": "Error", "description": SUBMIT_FAILED, "variant": "destructive"}
    assert again.is_open is True
    assert again.submitting is False
    assert reported == [review.id]

    listed = client.get(f"/api/campsites/{review.campsite_id}/reviews").json()["data"]
    assert listed[0]["report_count"] == 1


def test_client_toggles_helpful_vote(camper_api, owner, make_campsite, make_review):
    review = make_review(make_campsite(), owner)
    assert camper_api.toggle_helpful(review.id) == {"review_id": review.id, "voted": True, "helpful_count": 1}
    assert camper_api.toggle_helpful(review.id)["voted"] is False
