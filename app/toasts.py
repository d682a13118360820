import logging

logger = logging.getLogger(__name__)


class Toaster:
    def __init__(self):
        self.toasts = []

    def show(self, title, description=None, variant="default"):
        toast = {"title": title, "description": description, "variant": variant}
        self.toasts.append(toast)
        log = logger.warning if variant == "destructive" else logger.info
        log(f"[{title}] {description or ''}".rstrip())
        return toast

    def success(self, description, title="Success"):
        return self.show(title, description)

    def error(self, description, title="Error"):
        return self.show(title, description, variant="destructive")

    @property
    def last(self):
        return self.toasts[-1] if self.toasts else None

    def clear(self):
        self.toasts = []
