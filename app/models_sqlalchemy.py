import enum
from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, Float, Boolean, DateTime, Date, ForeignKey, Text, Enum,
    Index, UniqueConstraint
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class UserRole(str, enum.Enum):
    user = "user"
    owner = "owner"
    admin = "admin"


class ApprovalStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    archived = "archived"


class CampsiteType(str, enum.Enum):
    camping = "camping"
    glamping = "glamping"
    tented_resort = "tented-resort"
    bungalow = "bungalow"
    cabin = "cabin"
    rv_caravan = "rv-caravan"


class ReportReason(str, enum.Enum):
    spam = "spam"
    inappropriate = "inappropriate"
    fake = "fake"
    other = "other"


class InquiryStatus(str, enum.Enum):
    new = "new"
    in_progress = "in_progress"
    resolved = "resolved"
    closed = "closed"


def _enum(enum_cls, name):
    # store the values ("tented-resort"), not the member names
    return Enum(enum_cls, name=name, values_callable=lambda e: [m.value for m in e])


class Profile(Base):
    __tablename__ = "profiles"
    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    user_role = Column(_enum(UserRole, "user_role"), nullable=False, default=UserRole.user)
    access_token = Column(String(128), nullable=True, unique=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    campsites = relationship("Campsite", back_populates="owner", cascade="all, delete-orphan")
    reviews = relationship("Review", back_populates="user", cascade="all, delete-orphan",
                           foreign_keys="Review.user_id")
    review_reports = relationship("ReviewReport", back_populates="user", cascade="all, delete-orphan")
    wishlist_items = relationship("Wishlist", back_populates="user", cascade="all, delete-orphan")
    owner_requests = relationship("OwnerRequest", back_populates="user", cascade="all, delete-orphan",
                                  foreign_keys="OwnerRequest.user_id")


class Province(Base):
    __tablename__ = "provinces"
    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String(100), nullable=False, unique=True)
    name_th = Column(String(100), nullable=False)
    name_en = Column(String(100), nullable=False)
    region = Column(String(50), nullable=True)

    campsites = relationship("Campsite", back_populates="province")


class Campsite(Base):
    __tablename__ = "campsites"
    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    province_id = Column(Integer, ForeignKey("provinces.id"), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    campsite_type = Column(_enum(CampsiteType, "campsite_type"), nullable=False)
    address = Column(String(500), nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    min_price = Column(Float, nullable=True)
    max_price = Column(Float, nullable=True)
    check_in_time = Column(String(5), nullable=False, default="14:00")
    check_out_time = Column(String(5), nullable=False, default="12:00")
    phone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    website = Column(String(500), nullable=True)
    booking_url = Column(String(500), nullable=True)
    amenities = Column(Text, nullable=True)  # comma-separated amenity slugs
    status = Column(_enum(ApprovalStatus, "campsite_status"), nullable=False,
                    default=ApprovalStatus.pending, index=True)
    rejection_reason = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("Profile", back_populates="campsites")
    province = relationship("Province", back_populates="campsites")
    photos = relationship("CampsitePhoto", back_populates="campsite", cascade="all, delete-orphan",
                          order_by="CampsitePhoto.sort_order")
    reviews = relationship("Review", back_populates="campsite", cascade="all, delete-orphan")
    inquiries = relationship("Inquiry", back_populates="campsite", cascade="all, delete-orphan")
    wishlisted_by = relationship("Wishlist", back_populates="campsite", cascade="all, delete-orphan")


class CampsitePhoto(Base):
    __tablename__ = "campsite_photos"
    id = Column(Integer, primary_key=True, index=True)
    campsite_id = Column(Integer, ForeignKey("campsites.id", ondelete="CASCADE"), nullable=False, index=True)
    url = Column(String(1000), nullable=False)
    alt_text = Column(String(255), nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    is_primary = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    campsite = relationship("Campsite", back_populates="photos")


class OwnerRequest(Base):
    __tablename__ = "owner_requests"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    business_name = Column(String(255), nullable=False)
    business_description = Column(Text, nullable=False)
    contact_phone = Column(String(20), nullable=False)
    status = Column(_enum(ApprovalStatus, "owner_request_status"), nullable=False,
                    default=ApprovalStatus.pending, index=True)
    rejection_reason = Column(Text, nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    reviewed_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    user = relationship("Profile", back_populates="owner_requests", foreign_keys=[user_id])


class Review(Base):
    __tablename__ = "reviews"
    id = Column(Integer, primary_key=True, index=True)
    campsite_id = Column(Integer, ForeignKey("campsites.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    rating_overall = Column(Integer, nullable=False)
    title = Column(String(100), nullable=True)
    content = Column(Text, nullable=False)
    is_reported = Column(Boolean, nullable=False, default=False)
    report_count = Column(Integer, nullable=False, default=0)
    helpful_count = Column(Integer, nullable=False, default=0)
    is_hidden = Column(Boolean, nullable=False, default=False)
    hidden_reason = Column(Text, nullable=True)
    hidden_at = Column(DateTime, nullable=True)
    hidden_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    campsite = relationship("Campsite", back_populates="reviews")
    user = relationship("Profile", back_populates="reviews", foreign_keys=[user_id])
    reports = relationship("ReviewReport", back_populates="review", cascade="all, delete-orphan")
    helpful_votes = relationship("ReviewHelpful", back_populates="review", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("campsite_id", "user_id", name="uq_reviews_campsite_user"),
    )


class ReviewReport(Base):
    __tablename__ = "review_reports"
    id = Column(Integer, primary_key=True, index=True)
    review_id = Column(Integer, ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    reason = Column(_enum(ReportReason, "report_reason"), nullable=False)
    details = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    review = relationship("Review", back_populates="reports")
    user = relationship("Profile", back_populates="review_reports")

    __table_args__ = (
        UniqueConstraint("review_id", "user_id", name="uq_review_reports_review_user"),
    )


class ReviewHelpful(Base):
    __tablename__ = "review_helpful"
    review_id = Column(Integer, ForeignKey("reviews.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    review = relationship("Review", back_populates="helpful_votes")


class Inquiry(Base):
    __tablename__ = "inquiries"
    id = Column(Integer, primary_key=True, index=True)
    campsite_id = Column(Integer, ForeignKey("campsites.id", ondelete="CASCADE"), nullable=False, index=True)
    guest_name = Column(String(100), nullable=False)
    guest_email = Column(String(255), nullable=False)
    guest_phone = Column(String(20), nullable=True)
    message = Column(Text, nullable=False)
    check_in = Column(Date, nullable=True)
    check_out = Column(Date, nullable=True)
    status = Column(_enum(InquiryStatus, "inquiry_status"), nullable=False, default=InquiryStatus.new)
    owner_reply = Column(Text, nullable=True)
    replied_at = Column(DateTime, nullable=True)
    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    campsite = relationship("Campsite", back_populates="inquiries")


class Wishlist(Base):
    __tablename__ = "wishlists"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    campsite_id = Column(Integer, ForeignKey("campsites.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    user = relationship("Profile", back_populates="wishlist_items")
    campsite = relationship("Campsite", back_populates="wishlisted_by")

    __table_args__ = (
        UniqueConstraint("user_id", "campsite_id", name="uq_wishlists_user_campsite"),
    )


class ModerationLog(Base):
    __tablename__ = "moderation_logs"
    id = Column(Integer, primary_key=True, index=True)
    admin_id = Column(Integer, ForeignKey("profiles.id"), nullable=False)
    action_type = Column(String(50), nullable=False)
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(Integer, nullable=False)
    reason = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


Index("ix_reviews_reported", Review.is_reported, Review.is_hidden)
