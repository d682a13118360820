import os
import uuid
from functools import partial

from client_api import ApiError
from moderation import ConfirmPrompt
from optimistic import OptimisticList
from storage import MAX_PHOTOS_PER_CAMPSITE
from toasts import Toaster

DELETE_PHOTO_CONFIRMATION = "Are you sure you want to delete this photo?"


def move(items, from_index, to_index):
    items = list(items)
    item = items.pop(from_index)
    items.insert(to_index, item)
    return items


def renumber(photos):
    for index, photo in enumerate(photos):
        photo["sort_order"] = index
    return photos


class PhotoManager:
    """Owner-side photo grid for one campsite: upload, reorder, set primary, delete."""

    def __init__(self, api, campsite_id, photos=None, max_photos=MAX_PHOTOS_PER_CAMPSITE,
                 toaster=None, confirm=None):
        self.api = api
        self.campsite_id = campsite_id
        self.max_photos = max_photos
        self.toaster = toaster or Toaster()
        self.confirm = confirm or ConfirmPrompt()
        ordered = sorted(photos or [], key=lambda p: p["sort_order"])
        self.photos = OptimisticList(ordered, toaster=self.toaster)
        self.uploading = False

    @property
    def items(self):
        return self.photos.items

    @property
    def remaining_slots(self):
        return max(0, self.max_photos - len(self.photos))

    @property
    def can_upload(self):
        return not self.photos.busy and self.remaining_slots > 0

    @property
    def primary(self):
        return next((p for p in self.items if p.get("is_primary")), None)

    # ---------- upload ----------
    def upload(self, files):
        """Upload ``files`` given as ``(filename, content, content_type)`` tuples, one at a time."""
        if len(self.photos) + len(files) > self.max_photos:
            self.toaster.error(f"Maximum {self.max_photos} photos allowed")
            return False
        with self.photos.exclusive() as acquired:
            if not acquired:
                return False
            self.uploading = True
            try:
                for filename, content, content_type in files:
                    if not self._upload_one(filename, content, content_type):
                        return False
            finally:
                self.uploading = False
        count = len(files)
        self.toaster.success(f"{count} photo{'s' if count > 1 else ''} uploaded successfully")
        return True

    def _upload_one(self, filename, content, content_type):
        placeholder_id = f"pending-{uuid.uuid4().hex[:8]}"
        alt_text = os.path.splitext(filename)[0]
        is_primary = len(self.photos) == 0
        self.photos.items.append({
            "id": placeholder_id,
            "campsite_id": self.campsite_id,
            "url": None,
            "alt_text": alt_text,
            "sort_order": len(self.photos),
            "is_primary": is_primary,
        })
        self.photos.in_flight.add(placeholder_id)
        try:
            photo = self.api.upload_photo(self.campsite_id, filename, content, content_type,
                                          alt_text=alt_text, is_primary=is_primary)
        except ApiError as e:
            self.photos.items = [p for p in self.photos.items if p["id"] != placeholder_id]
            self.toaster.error(e.message or f"Failed to upload {filename}")
            return False
        except Exception:
            self.photos.items = [p for p in self.photos.items if p["id"] != placeholder_id]
            raise
        finally:
            self.photos.in_flight.discard(placeholder_id)
        self.photos.items = [photo if p["id"] == placeholder_id else p for p in self.photos.items]
        return True

    # ---------- reorder ----------
    def reorder(self, from_index, to_index):
        if from_index == to_index or not (0 <= from_index < len(self.photos) and 0 <= to_index < len(self.photos)):
            return False

        def request():
            order = [{"id": p["id"], "sort_order": p["sort_order"]} for p in self.photos.items]
            return self.api.reorder_photos(self.campsite_id, order)

        return self.photos.mutate(
            lambda items: renumber(move(items, from_index, to_index)),
            request,
            error_message="Failed to reorder photos",
        )

    # ---------- primary ----------
    def set_primary(self, photo_id):
        def apply(items):
            for p in items:
                p["is_primary"] = p["id"] == photo_id
            return items

        return self.photos.mutate(
            apply,
            partial(self.api.set_primary_photo, self.campsite_id, photo_id),
            item_id=photo_id,
            success_message="Primary photo updated",
            error_message="Failed to set primary photo",
        )

    # ---------- delete ----------
    def delete(self, photo_id):
        if self.photos.busy:
            return False
        if not self.confirm(DELETE_PHOTO_CONFIRMATION):
            return False
        return self.photos.remove(
            photo_id,
            partial(self.api.delete_photo, self.campsite_id, photo_id),
            success_message="Photo deleted",
            error_message="Failed to delete photo",
        )
