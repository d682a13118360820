import logging
from functools import partial

from client_api import ApiError
from optimistic import OptimisticList
from toasts import Toaster

logger = logging.getLogger(__name__)


class WishlistToggle:
    """Saved-campsite state for the heart button, updated optimistically."""

    def __init__(self, api, items=None, toaster=None):
        self.api = api
        self.toaster = toaster or Toaster()
        self.items = OptimisticList(items, key="campsite_id", toaster=self.toaster)

    @property
    def count(self):
        return len(self.items)

    def is_saved(self, campsite_id):
        return self.items.get(campsite_id) is not None

    def load(self):
        if not self.api.token:
            self.items.replace([])
            return False
        try:
            self.items.replace(self.api.wishlist())
        except ApiError as e:
            logger.warning(f"Failed to load wishlist: {e.message}")
            return False
        return True

    def add(self, campsite_id):
        if not self.api.token:
            self.toaster.error("Please log in to save to wishlist")
            return False

        def reconcile(items, saved):
            return [saved if i["campsite_id"] == campsite_id else i for i in items]

        return self.items.mutate(
            lambda items: items + [{"campsite_id": campsite_id}],
            partial(self.api.add_to_wishlist, campsite_id),
            item_id=campsite_id,
            reconcile=reconcile,
            success_message="Added to wishlist",
            error_message="Failed to add to wishlist",
        )

    def remove(self, campsite_id):
        if not self.api.token:
            self.toaster.error("Please log in to manage wishlist")
            return False
        return self.items.remove(
            campsite_id,
            partial(self.api.remove_from_wishlist, campsite_id),
            success_message="Removed from wishlist",
            error_message="Failed to remove from wishlist",
        )

    def toggle(self, campsite_id):
        if self.is_saved(campsite_id):
            return self.remove(campsite_id)
        return self.add(campsite_id)
