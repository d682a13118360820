import logging

from client_api import ApiError
from models_sqlalchemy import CampsiteType
from storage import ALLOWED_PHOTO_TYPES, MAX_PHOTO_SIZE, MAX_PHOTOS_PER_CAMPSITE
from toasts import Toaster

logger = logging.getLogger(__name__)

BASIC_INFO = "basic_info"
LOCATION = "location"
PHOTOS = "photos"
AMENITIES = "amenities"
STEPS = [BASIC_INFO, LOCATION, PHOTOS, AMENITIES]

PAYLOAD_FIELDS = (
    "name", "description", "campsite_type", "province_id", "address", "latitude", "longitude",
    "min_price", "max_price", "check_in_time", "check_out_time", "phone", "email", "website",
    "booking_url", "amenities",
)


class GeolocationError(Exception):
    pass


def _number(value):
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def validate_basic_info(data):
    errors = {}
    name = (data.get("name") or "").strip()
    description = (data.get("description") or "").strip()
    if len(name) < 3:
        errors["name"] = "Name must be at least 3 characters"
    if len(description) < 50:
        errors["description"] = "Description must be at least 50 characters"
    elif len(description) > 5000:
        errors["description"] = "Description must be at most 5000 characters"
    if data.get("campsite_type") not in {t.value for t in CampsiteType}:
        errors["campsite_type"] = "Please select a campsite type"
    if not data.get("check_in_time"):
        errors["check_in_time"] = "Check-in time is required"
    if not data.get("check_out_time"):
        errors["check_out_time"] = "Check-out time is required"
    min_price, max_price = _number(data.get("min_price")), _number(data.get("max_price"))
    if min_price is not None and max_price is not None and min_price > max_price:
        errors["max_price"] = "Maximum price must be greater than or equal to minimum price"
    return errors


def validate_location(data):
    errors = {}
    if not data.get("province_id"):
        errors["province_id"] = "Please select a province"
    if len((data.get("address") or "").strip()) < 10:
        errors["address"] = "Address must be at least 10 characters"
    latitude, longitude = _number(data.get("latitude")), _number(data.get("longitude"))
    if latitude is None or not -90 <= latitude <= 90:
        errors["latitude"] = "Please enter a valid latitude"
    if longitude is None or not -180 <= longitude <= 180:
        errors["longitude"] = "Please enter a valid longitude"
    return errors


def validate_photo_files(files):
    """Split ``(filename, content, content_type)`` tuples into accepted files and per-file errors."""
    valid, errors = [], []
    for filename, content, content_type in files:
        if content_type not in ALLOWED_PHOTO_TYPES:
            errors.append(f"{filename}: Invalid file type. Use JPG, PNG, or WebP.")
        elif len(content) > MAX_PHOTO_SIZE:
            errors.append(f"{filename}: File too large. Max {MAX_PHOTO_SIZE // (1024 * 1024)}MB.")
        else:
            valid.append((filename, content, content_type))
    return valid, errors


STEP_VALIDATORS = {
    BASIC_INFO: validate_basic_info,
    LOCATION: validate_location,
    PHOTOS: lambda data: {},
    AMENITIES: lambda data: {},
}


class CampsiteWizard:
    def __init__(self, api, toaster=None, geolocator=None):
        self.api = api
        self.toaster = toaster or Toaster()
        self.geolocator = geolocator
        self.data = {"check_in_time": "14:00", "check_out_time": "12:00", "amenities": []}
        self.photos = []
        self.photo_errors = []
        self.errors = {}
        self.step_index = 0
        self.submitting = False
        self.campsite = None
        self.uploaded_count = 0

    @property
    def step(self):
        return STEPS[self.step_index]

    @property
    def is_last_step(self):
        return self.step_index == len(STEPS) - 1

    def update(self, **changes):
        self.data.update(changes)
        if self.errors:
            current = STEP_VALIDATORS[self.step](self.data)
            for field in list(self.errors):
                if field != "location" and field not in current:
                    del self.errors[field]

    def next(self):
        errors = STEP_VALIDATORS[self.step](self.data)
        if errors:
            self.errors = errors
            return False
        self.errors = {}
        if not self.is_last_step:
            self.step_index += 1
        return True

    def back(self):
        if self.step_index == 0:
            return False
        self.errors = {}
        self.step_index -= 1
        return True

    # ---------- location ----------
    def use_current_location(self):
        if self.geolocator is None:
            self.errors["location"] = "Geolocation is not supported by your browser"
            return False
        try:
            latitude, longitude = self.geolocator()
        except GeolocationError as e:
            logger.info(f"Geolocation failed: {e}")
            self.errors["location"] = "Unable to get your location"
            return False
        self.errors.pop("location", None)
        self.update(latitude=latitude, longitude=longitude)
        return True

    # ---------- photos ----------
    @property
    def remaining_photo_slots(self):
        return MAX_PHOTOS_PER_CAMPSITE - len(self.photos)

    def add_photos(self, files):
        remaining = self.remaining_photo_slots
        if len(files) > remaining:
            self.photo_errors = [f"Can only add {remaining} more photo(s). Maximum {MAX_PHOTOS_PER_CAMPSITE}."]
            return []
        valid, errors = validate_photo_files(files)
        self.photos.extend(valid)
        self.photo_errors = errors
        return valid

    def remove_photo(self, index):
        if 0 <= index < len(self.photos):
            del self.photos[index]

    # ---------- amenities ----------
    def toggle_amenity(self, slug):
        amenities = list(self.data.get("amenities") or [])
        if slug in amenities:
            amenities.remove(slug)
        else:
            amenities.append(slug)
        self.update(amenities=amenities)

    # ---------- submit ----------
    def payload(self):
        return {k: self.data[k] for k in PAYLOAD_FIELDS if self.data.get(k) not in (None, "")}

    def submit(self):
        if self.submitting or not self.is_last_step:
            return None
        for index, step in enumerate(STEPS):
            errors = STEP_VALIDATORS[step](self.data)
            if errors:
                self.errors = errors
                self.step_index = index
                return None
        self.submitting = True
        try:
            if self.campsite is None:
                self.campsite = self.api.create_campsite(self.payload())
            campsite_id = self.campsite["id"]
            while self.photos:
                filename, content, content_type = self.photos[0]
                self.api.upload_photo(campsite_id, filename, content, content_type,
                                      alt_text=filename.rsplit(".", 1)[0],
                                      is_primary=self.uploaded_count == 0)
                self.uploaded_count += 1
                self.photos.pop(0)
        except ApiError as e:
            self.toaster.error(e.message or "Failed to create campsite")
            return None
        finally:
            self.submitting = False
        self.toaster.success("Campsite submitted for review")
        return self.campsite
