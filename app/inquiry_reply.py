from client_api import ApiError
from toasts import Toaster

REPLY_MIN = 10
REPLY_MAX = 2000


class InquiryReplyForm:
    def __init__(self, api, inquiry, toaster=None):
        self.api = api
        self.inquiry = dict(inquiry)
        self.toaster = toaster or Toaster()
        self.reply = ""
        self.error = None
        self.sending = False

    def _validate(self):
        text = self.reply.strip()
        if len(text) < REPLY_MIN:
            return f"Reply must be at least {REPLY_MIN} characters"
        if len(text) > REPLY_MAX:
            return f"Reply must be at most {REPLY_MAX} characters"
        return None

    def set_reply(self, value):
        self.reply = value
        if self.error and self._validate() is None:
            self.error = None

    @property
    def can_send(self):
        return not self.sending and self._validate() is None

    def send(self):
        if self.sending:
            return False
        self.error = self._validate()
        if self.error:
            return False
        self.sending = True
        try:
            updated = self.api.reply_inquiry(self.inquiry["id"], self.reply.strip())
        except ApiError as e:
            self.toaster.error(e.message or "Failed to send reply")
            return False
        finally:
            self.sending = False
        self.inquiry.update(updated)
        self.reply = ""
        self.toaster.success("Reply sent successfully")
        return True
