import logging

from client_api import ApiError
from models_pydantic import REASON_MAX
from models_sqlalchemy import ReportReason
from toasts import Toaster

logger = logging.getLogger(__name__)

REPORT_REASONS = {
    ReportReason.spam: ("Spam", "This review contains spam or promotional content"),
    ReportReason.inappropriate: ("Inappropriate Content", "This review contains offensive or inappropriate language"),
    ReportReason.fake: ("Fake Review", "This review appears to be fake or from someone who did not visit"),
    ReportReason.other: ("Other", "This review violates guidelines for another reason"),
}

SUBMIT_FAILED = "Failed to submit report. Please try again."


class ReportReviewForm:
    """Report dialog for one review.

    Any failed submission, a duplicate report included, shows the same
    generic error and leaves ``reported`` untouched. ``reported`` may be
    shared between forms so a page can tell which reviews the user has
    already flagged.
    """

    def __init__(self, api, review_id, toaster=None, reported=None):
        self.api = api
        self.review_id = review_id
        self.toaster = toaster or Toaster()
        self.reported = reported if reported is not None else []
        self.is_open = False
        self.reason = None
        self.details = ""
        self.error = None
        self.submitting = False

    def open(self):
        self.is_open = True

    def close(self):
        if self.submitting:
            return False
        self.is_open = False
        self.reason = None
        self.details = ""
        self.error = None
        return True

    def select_reason(self, reason):
        self.reason = ReportReason(reason)
        if self.error == "Please select a reason":
            self.error = None

    def set_details(self, value):
        self.details = value[:REASON_MAX]

    @property
    def details_remaining(self):
        return REASON_MAX - len(self.details)

    @property
    def can_submit(self):
        return not self.submitting and self.reason is not None

    def submit(self):
        if self.submitting:
            return False
        if self.reason is None:
            self.error = "Please select a reason"
            return False
        self.submitting = True
        self.error = None
        try:
            self.api.report_review(self.review_id, self.reason.value, self.details.strip() or None)
        except ApiError as e:
            logger.warning(f"Report for review {self.review_id} failed: {e.message}")
            self.error = SUBMIT_FAILED
            self.toaster.error(SUBMIT_FAILED)
            return False
        finally:
            self.submitting = False
        if self.review_id not in self.reported:
            self.reported.append(self.review_id)
        self.toaster.success("Report submitted. Thank you for helping keep reviews trustworthy.")
        self.close()
        return True
