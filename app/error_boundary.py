import logging
import uuid

from settings import is_development

logger = logging.getLogger(__name__)

ERROR_HEADING = "เกิดข้อผิดพลาด"
ERROR_TITLE = "ขออภัย เกิดปัญหาบางอย่าง"
ERROR_DESCRIPTION = "เกิดข้อผิดพลาดขณะโหลดหน้านี้ ทีมงานได้รับแจ้งปัญหานี้แล้ว"
RETRY_LABEL = "ลองใหม่อีกครั้ง"
HOME_LABEL = "กลับหน้าหลัก"
HOME_HREF = "/"


def error_digest(error):
    return getattr(error, "digest", None)


def error_fallback(error, development=None, digest=None):
    if development is None:
        development = is_development()
    fallback = {
        "heading": ERROR_HEADING,
        "title": ERROR_TITLE,
        "description": ERROR_DESCRIPTION,
        "retry_label": RETRY_LABEL,
        "home_label": HOME_LABEL,
        "home_href": HOME_HREF,
    }
    if development:
        fallback["details_label"] = "Error Details:"
        fallback["details"] = str(error)
        digest = digest or error_digest(error)
        if digest:
            fallback["error_id"] = f"Error ID: {digest}"
    return fallback


class ErrorBoundary:
    """Runs a render callable and substitutes the localized fallback when it raises.

    ``reset()`` renders again with the same callable; it does not refetch
    anything the callable closed over.
    """

    def __init__(self, render):
        self._render = render
        self.error = None
        self.output = None

    @property
    def has_error(self):
        return self.error is not None

    def render(self):
        try:
            self.output = self._render()
            self.error = None
        except Exception as e:
            logger.error(f"Application error: {e}", exc_info=True)
            self.error = e
            self.output = error_fallback(e)
        return self.output

    def reset(self):
        self.error = None
        return self.render()


def server_error_body(exc):
    digest = error_digest(exc) or uuid.uuid4().hex[:8]
    logger.error(f"Unhandled error [{digest}]: {exc}", exc_info=exc)
    return {"success": False, "error": ERROR_TITLE, "fallback": error_fallback(exc, digest=digest)}
