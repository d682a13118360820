from enum import Enum
from typing import Optional, List, Dict, Generic, TypeVar
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field, AliasChoices, field_validator, model_validator

from models_sqlalchemy import ApprovalStatus, CampsiteType, ReportReason, InquiryStatus, UserRole
from utils import comma_string_to_list

T = TypeVar("T")

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"
PHONE_PATTERN = r"^0\d{8,9}$"

REJECTION_REASON_MIN = 10
HIDE_REASON_MIN = 5
REASON_MAX = 500


# ---------- Envelopes ----------

class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


class PaginatedResponse(BaseModel, Generic[T]):
    success: bool = True
    data: List[T]
    pagination: Pagination


# ---------- Provinces ----------

class ProvinceResponse(BaseModel):
    id: int
    slug: str
    name_th: str
    name_en: str
    region: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# ---------- Campsites ----------

class CampsiteBase(BaseModel):
    name: str = Field(..., min_length=3, max_length=255)
    description: str = Field(..., min_length=50, max_length=5000)
    campsite_type: CampsiteType
    province_id: int
    address: str = Field(..., min_length=10, max_length=500)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    min_price: Optional[float] = Field(None, ge=0)
    max_price: Optional[float] = Field(None, ge=0)
    check_in_time: str = Field("14:00", pattern=TIME_PATTERN)
    check_out_time: str = Field("12:00", pattern=TIME_PATTERN)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    email: Optional[EmailStr] = None
    website: Optional[str] = Field(None, max_length=500)
    booking_url: Optional[str] = Field(None, max_length=500)
    amenities: Optional[List[str]] = None


class CampsiteCreate(CampsiteBase):
    @model_validator(mode="after")
    def check_price_range(self):
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("min_price must not exceed max_price")
        return self


class CampsiteUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=3, max_length=255)
    description: Optional[str] = Field(None, min_length=50, max_length=5000)
    campsite_type: Optional[CampsiteType] = None
    province_id: Optional[int] = None
    address: Optional[str] = Field(None, min_length=10, max_length=500)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    min_price: Optional[float] = Field(None, ge=0)
    max_price: Optional[float] = Field(None, ge=0)
    check_in_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    check_out_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    email: Optional[EmailStr] = None
    website: Optional[str] = Field(None, max_length=500)
    booking_url: Optional[str] = Field(None, max_length=500)
    amenities: Optional[List[str]] = None


class AmenitiesUpdate(BaseModel):
    amenities: List[str]


class PhotoResponse(BaseModel):
    id: int
    campsite_id: int
    url: str
    alt_text: Optional[str] = None
    sort_order: int
    is_primary: bool

    model_config = ConfigDict(from_attributes=True)


class PhotoOrder(BaseModel):
    id: int
    sort_order: int = Field(..., ge=0)


class PhotoReorder(BaseModel):
    photos: List[PhotoOrder] = Field(..., min_length=1)


class CampsiteResponse(CampsiteBase):
    id: int
    owner_id: int
    status: ApprovalStatus
    rejection_reason: Optional[str] = None
    # relaxed for rows written before the current constraints
    name: str
    description: str
    address: str
    amenities: List[str] = []
    photos: List[PhotoResponse] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("amenities", mode="before")
    @classmethod
    def split_amenities(cls, v):
        if v is None or isinstance(v, str):
            return comma_string_to_list(v)
        return v


class SearchSort(str, Enum):
    newest = "newest"
    rating = "rating"
    price_asc = "price_asc"
    price_desc = "price_desc"


class CampsiteSummary(BaseModel):
    id: int
    name: str
    campsite_type: CampsiteType
    province_name: str
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    thumbnail_url: Optional[str] = None
    rating_average: Optional[float] = None
    review_count: int = 0


class OwnerCampsiteSummary(BaseModel):
    id: int
    name: str
    status: ApprovalStatus
    rejection_reason: Optional[str] = None
    thumbnail_url: Optional[str] = None
    photo_count: int
    inquiry_count: int
    created_at: datetime
    updated_at: datetime


class OwnerDashboardStats(BaseModel):
    total_campsites: int = 0
    active_campsites: int = 0
    pending_campsites: int = 0
    rejected_campsites: int = 0
    archived_campsites: int = 0
    new_inquiries: int = 0
    inquiries_in_period: int = 0
    total_reviews: int = 0
    average_rating: Optional[float] = None
    period_days: int


class PendingCampsiteResponse(BaseModel):
    id: int
    name: str
    description: str
    campsite_type: CampsiteType
    province_name: str
    address: str
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    owner_id: int
    owner_name: str
    photo_count: int
    submitted_at: datetime


# ---------- Moderation ----------

class RejectionRequest(BaseModel):
    rejection_reason: str = Field(..., validation_alias=AliasChoices("rejection_reason", "reason"))

    @field_validator("rejection_reason")
    @classmethod
    def check_reason(cls, v):
        v = v.strip()
        if len(v) < REJECTION_REASON_MIN:
            raise ValueError(f"Rejection reason must be at least {REJECTION_REASON_MIN} characters")
        if len(v) > REASON_MAX:
            raise ValueError(f"Rejection reason must be at most {REASON_MAX} characters")
        return v


class HideReviewRequest(BaseModel):
    hide_reason: str = Field(..., validation_alias=AliasChoices("hide_reason", "reason"))

    @field_validator("hide_reason")
    @classmethod
    def check_reason(cls, v):
        v = v.strip()
        if len(v) < HIDE_REASON_MIN:
            raise ValueError(f"Hide reason must be at least {HIDE_REASON_MIN} characters")
        if len(v) > REASON_MAX:
            raise ValueError(f"Hide reason must be at most {REASON_MAX} characters")
        return v


class ModerationResult(BaseModel):
    id: int
    action: str
    new_status: Optional[str] = None


class AdminStats(BaseModel):
    pending_campsites: int = 0
    pending_owner_requests: int = 0
    reported_reviews: int = 0
    total_campsites: int = 0
    total_users: int = 0
    total_reviews: int = 0


# ---------- Owner requests ----------

class OwnerRequestCreate(BaseModel):
    business_name: str = Field(..., min_length=2, max_length=255)
    business_description: str = Field(..., min_length=20, max_length=2000)
    contact_phone: str = Field(..., pattern=PHONE_PATTERN)


class OwnerRequestResponse(BaseModel):
    id: int
    user_id: int
    business_name: str
    business_description: str
    contact_phone: str
    status: ApprovalStatus
    rejection_reason: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[int] = None
    created_at: datetime
    user_full_name: Optional[str] = None


# ---------- Reviews ----------

class ReviewCreate(BaseModel):
    rating_overall: int = Field(..., ge=1, le=5)
    title: Optional[str] = Field(None, max_length=100)
    content: str = Field(..., min_length=20, max_length=2000)


class ReviewResponse(BaseModel):
    id: int
    campsite_id: int
    user_id: int
    rating_overall: int
    title: Optional[str] = None
    content: str
    is_reported: bool
    report_count: int
    helpful_count: int = 0
    is_hidden: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReviewSummary(BaseModel):
    average_rating: float = 0
    total_count: int = 0
    rating_distribution: Dict[int, int]
    rating_percentages: Dict[int, int]


class HelpfulVoteResult(BaseModel):
    review_id: int
    voted: bool
    helpful_count: int


class ReportCreate(BaseModel):
    reason: ReportReason
    details: Optional[str] = Field(None, max_length=500)


class ReportEntry(BaseModel):
    id: int
    user_id: int
    reporter_name: str
    reason: ReportReason
    details: Optional[str] = None
    created_at: datetime


class ReportedReviewResponse(ReviewResponse):
    campsite_name: str
    reviewer_name: str
    reports: List[ReportEntry] = []


# ---------- Inquiries ----------

class InquiryCreate(BaseModel):
    campsite_id: int
    guest_name: str = Field(..., min_length=2, max_length=100)
    guest_email: EmailStr
    guest_phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    message: str = Field(..., min_length=20, max_length=2000)
    check_in: Optional[date] = None
    check_out: Optional[date] = None


class InquiryReply(BaseModel):
    reply: str = Field(..., min_length=10, max_length=2000)


class InquiryStatusUpdate(BaseModel):
    status: InquiryStatus


class InquiryResponse(BaseModel):
    id: int
    campsite_id: int
    guest_name: str
    guest_email: EmailStr
    guest_phone: Optional[str] = None
    message: str
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    status: InquiryStatus
    owner_reply: Optional[str] = None
    replied_at: Optional[datetime] = None
    read_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InquiryListResponse(PaginatedResponse[InquiryResponse]):
    unread_count: int = 0


# ---------- Wishlist ----------

class WishlistAdd(BaseModel):
    campsite_id: int


class WishlistItemResponse(BaseModel):
    id: int
    campsite_id: int
    campsite_name: str
    created_at: datetime


class ProfileResponse(BaseModel):
    id: int
    full_name: str
    email: EmailStr
    user_role: UserRole

    model_config = ConfigDict(from_attributes=True)
