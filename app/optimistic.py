import copy
import logging
import threading
from contextlib import contextmanager

from client_api import ApiError
from toasts import Toaster

logger = logging.getLogger(__name__)


class OptimisticList:
    """A client-side list whose mutations show up before the server confirms them.

    Each mutation snapshots the items, applies the change locally, then
    issues the request. On success the optional ``reconcile`` hook folds the
    server answer back in; on ``ApiError`` the exact snapshot is restored and
    a destructive toast is raised. Any other exception restores the
    snapshot too and propagates. Nothing is retried.

    Only one mutation runs at a time per list. A mutation attempted while
    another is in flight is refused: it returns False and sends nothing.
    """

    def __init__(self, items=None, key="id", toaster=None):
        self.items = list(items or [])
        self.key = key
        self.toaster = toaster or Toaster()
        self.in_flight = set()
        self._lock = threading.Lock()

    def __len__(self):
        return len(self.items)

    @property
    def busy(self):
        return self._lock.locked()

    @property
    def ids(self):
        return [i[self.key] for i in self.items]

    def get(self, item_id):
        return next((i for i in self.items if i[self.key] == item_id), None)

    def replace(self, items):
        self.items = list(items)

    def is_loading(self, item_id):
        return item_id in self.in_flight

    @contextmanager
    def exclusive(self):
        acquired = self._lock.acquire(blocking=False)
        try:
            yield acquired
        finally:
            if acquired:
                self._lock.release()

    def mutate(self, apply, request, item_id=None, reconcile=None,
               error_message=None, success_message=None, on_rollback=None):
        if not self._lock.acquire(blocking=False):
            logger.debug(f"Refused mutation on busy list (item {item_id})")
            return False
        snapshot = copy.deepcopy(self.items)
        if item_id is not None:
            self.in_flight.add(item_id)
        try:
            self.items = apply(copy.deepcopy(self.items))
            try:
                result = request()
            except ApiError as e:
                logger.warning(f"Rolling back optimistic update: {e.message}")
                self.items = snapshot
                if on_rollback:
                    on_rollback()
                self.toaster.error(error_message or e.message)
                return False
            except Exception:
                self.items = snapshot
                if on_rollback:
                    on_rollback()
                raise
            if reconcile:
                self.items = reconcile(self.items, result)
            if success_message:
                self.toaster.success(success_message)
            return True
        finally:
            self.in_flight.discard(item_id)
            self._lock.release()

    def remove(self, item_id, request, **kwargs):
        return self.mutate(
            lambda items: [i for i in items if i[self.key] != item_id],
            request,
            item_id=item_id,
            **kwargs,
        )

    def update(self, item_id, changes, request, **kwargs):
        def apply(items):
            for i in items:
                if i[self.key] == item_id:
                    i.update(changes)
            return items

        return self.mutate(apply, request, item_id=item_id, **kwargs)
