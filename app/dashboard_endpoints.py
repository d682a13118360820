import logging
from datetime import datetime, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy import func
from sqlalchemy.orm import Session

import models_sqlalchemy as models
import models_pydantic as schemas
import notifications
import storage
from auth import can_manage, require_owner
from database import get_db
from utils import list_to_comma_string, page_offset, paginated_response, success_response, thumbnail_url

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


def _owned_campsite(db, campsite_id, user):
    campsite = db.query(models.Campsite).filter(models.Campsite.id == campsite_id).first()
    if not campsite:
        raise HTTPException(status_code=404, detail="Campsite not found")
    if not can_manage(user, campsite):
        raise HTTPException(status_code=403, detail="You do not have permission to manage this campsite")
    return campsite


def _campsite_photo(db, campsite, photo_id):
    photo = db.query(models.CampsitePhoto).filter(
        models.CampsitePhoto.id == photo_id,
        models.CampsitePhoto.campsite_id == campsite.id,
    ).first()
    if not photo:
        raise HTTPException(status_code=404, detail="Photo not found")
    return photo


def _check_province(db, province_id):
    if not db.query(models.Province).filter(models.Province.id == province_id).first():
        raise HTTPException(status_code=400, detail="Province not found")


# ---------- Stats Endpoints ----------
@router.get("/stats", response_model=schemas.ApiResponse[schemas.OwnerDashboardStats])
def dashboard_stats(
    period: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
    user: models.Profile = Depends(require_owner),
):
    by_status = dict(
        db.query(models.Campsite.status, func.count(models.Campsite.id))
        .filter(models.Campsite.owner_id == user.id)
        .group_by(models.Campsite.status)
        .all()
    )
    inquiries = db.query(models.Inquiry).join(models.Campsite).filter(models.Campsite.owner_id == user.id)
    since = datetime.utcnow() - timedelta(days=period)
    reviews = (
        db.query(func.count(models.Review.id), func.avg(models.Review.rating_overall))
        .select_from(models.Review)
        .join(models.Campsite)
        .filter(models.Campsite.owner_id == user.id, models.Review.is_hidden.is_(False))
        .one()
    )
    total_reviews, average = reviews
    stats = schemas.OwnerDashboardStats(
        total_campsites=sum(by_status.values()),
        active_campsites=by_status.get(models.ApprovalStatus.approved, 0),
        pending_campsites=by_status.get(models.ApprovalStatus.pending, 0),
        rejected_campsites=by_status.get(models.ApprovalStatus.rejected, 0),
        archived_campsites=by_status.get(models.ApprovalStatus.archived, 0),
        new_inquiries=inquiries.filter(models.Inquiry.read_at.is_(None)).count(),
        inquiries_in_period=inquiries.filter(models.Inquiry.created_at >= since).count(),
        total_reviews=total_reviews or 0,
        average_rating=round(average, 1) if average is not None else None,
        period_days=period,
    )
    return success_response(stats)


# ---------- Campsite Endpoints ----------
@router.get("/campsites", response_model=schemas.PaginatedResponse[schemas.OwnerCampsiteSummary])
def list_my_campsites(
    status: Optional[models.ApprovalStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    user: models.Profile = Depends(require_owner),
):
    query = db.query(models.Campsite).filter(models.Campsite.owner_id == user.id)
    if status:
        query = query.filter(models.Campsite.status == status)
    total = query.count()
    campsites = (
        query.order_by(models.Campsite.updated_at.desc(), models.Campsite.id.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
        .all()
    )
    return paginated_response(
        [
            schemas.OwnerCampsiteSummary(
                id=c.id,
                name=c.name,
                status=c.status,
                rejection_reason=c.rejection_reason,
                thumbnail_url=thumbnail_url(c.photos),
                photo_count=len(c.photos),
                inquiry_count=len(c.inquiries),
                created_at=c.created_at,
                updated_at=c.updated_at,
            )
            for c in campsites
        ],
        page, limit, total,
    )


@router.post(
    "/campsites",
    response_model=schemas.ApiResponse[schemas.CampsiteResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_campsite(
    campsite: schemas.CampsiteCreate,
    db: Session = Depends(get_db),
    user: models.Profile = Depends(require_owner),
):
    _check_province(db, campsite.province_id)
    data = campsite.model_dump()
    data["amenities"] = list_to_comma_string(data["amenities"])
    db_campsite = models.Campsite(owner_id=user.id, status=models.ApprovalStatus.pending, **data)
    db.add(db_campsite)
    db.commit()
    db.refresh(db_campsite)
    logger.info(f"Campsite {db_campsite.id} submitted by owner {user.id}")
    return success_response(schemas.CampsiteResponse.model_validate(db_campsite),
                            "Campsite submitted for review")


@router.get("/campsites/{campsite_id}", response_model=schemas.ApiResponse[schemas.CampsiteResponse])
def get_my_campsite(campsite_id: int, db: Session = Depends(get_db), user: models.Profile = Depends(require_owner)):
    campsite = _owned_campsite(db, campsite_id, user)
    return success_response(schemas.CampsiteResponse.model_validate(campsite))


@router.patch("/campsites/{campsite_id}", response_model=schemas.ApiResponse[schemas.CampsiteResponse])
def update_campsite(
    campsite_id: int,
    campsite_update: schemas.CampsiteUpdate,
    db: Session = Depends(get_db),
    user: models.Profile = Depends(require_owner),
):
    campsite = _owned_campsite(db, campsite_id, user)
    data = campsite_update.model_dump(exclude_unset=True)
    if "province_id" in data:
        _check_province(db, data["province_id"])
    min_price = data.get("min_price", campsite.min_price)
    max_price = data.get("max_price", campsite.max_price)
    if min_price is not None and max_price is not None and min_price > max_price:
        raise HTTPException(status_code=400, detail="min_price must not exceed max_price")
    for field, value in data.items():
        if field == "amenities":
            setattr(campsite, field, list_to_comma_string(value))
        elif value is not None:
            setattr(campsite, field, value)
    message = "Campsite updated"
    if campsite.status == models.ApprovalStatus.rejected:
        campsite.status = models.ApprovalStatus.pending
        campsite.rejection_reason = None
        message = "Campsite resubmitted for review"
    db.commit()
    db.refresh(campsite)
    return success_response(schemas.CampsiteResponse.model_validate(campsite), message)


@router.put("/campsites/{campsite_id}/amenities", response_model=schemas.ApiResponse[schemas.CampsiteResponse])
def update_amenities(
    campsite_id: int,
    body: schemas.AmenitiesUpdate,
    db: Session = Depends(get_db),
    user: models.Profile = Depends(require_owner),
):
    campsite = _owned_campsite(db, campsite_id, user)
    campsite.amenities = list_to_comma_string(body.amenities)
    db.commit()
    db.refresh(campsite)
    return success_response(schemas.CampsiteResponse.model_validate(campsite), "Amenities updated")


@router.delete("/campsites/{campsite_id}")
def archive_campsite(campsite_id: int, db: Session = Depends(get_db), user: models.Profile = Depends(require_owner)):
    campsite = _owned_campsite(db, campsite_id, user)
    if campsite.status == models.ApprovalStatus.archived:
        raise HTTPException(status_code=404, detail="Campsite not found")
    campsite.status = models.ApprovalStatus.archived
    db.commit()
    logger.info(f"Campsite {campsite.id} archived by owner {user.id}")
    return success_response(None, "Campsite deleted successfully")


# ---------- Photo Endpoints ----------
@router.post(
    "/campsites/{campsite_id}/photos",
    response_model=schemas.ApiResponse[schemas.PhotoResponse],
    status_code=status.HTTP_201_CREATED,
)
def upload_photo(
    campsite_id: int,
    photo: UploadFile = File(...),
    alt_text: Optional[str] = Form(None),
    is_primary: bool = Form(False),
    db: Session = Depends(get_db),
    user: models.Profile = Depends(require_owner),
):
    campsite = _owned_campsite(db, campsite_id, user)
    count = db.query(func.count(models.CampsitePhoto.id)).filter(
        models.CampsitePhoto.campsite_id == campsite.id
    ).scalar()
    if count >= storage.MAX_PHOTOS_PER_CAMPSITE:
        raise HTTPException(status_code=400,
                            detail=f"Maximum {storage.MAX_PHOTOS_PER_CAMPSITE} photos allowed per campsite")
    content = photo.file.read()
    try:
        url = storage.save_photo(campsite.id, photo.filename, photo.content_type, content)
    except storage.StorageError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if is_primary:
        for p in campsite.photos:
            p.is_primary = False
    max_order = db.query(func.max(models.CampsitePhoto.sort_order)).filter(
        models.CampsitePhoto.campsite_id == campsite.id
    ).scalar()
    db_photo = models.CampsitePhoto(
        campsite_id=campsite.id,
        url=url,
        alt_text=alt_text,
        sort_order=0 if max_order is None else max_order + 1,
        is_primary=is_primary,
    )
    db.add(db_photo)
    try:
        db.commit()
    except Exception:
        db.rollback()
        storage.delete_photo(url)
        raise
    db.refresh(db_photo)
    return success_response(schemas.PhotoResponse.model_validate(db_photo), "Photo uploaded")


@router.post(
    "/campsites/{campsite_id}/photos/reorder",
    response_model=schemas.ApiResponse[List[schemas.PhotoResponse]],
)
def reorder_photos(
    campsite_id: int,
    body: schemas.PhotoReorder,
    db: Session = Depends(get_db),
    user: models.Profile = Depends(require_owner),
):
    campsite = _owned_campsite(db, campsite_id, user)
    photos = {p.id: p for p in campsite.photos}
    for item in body.photos:
        if item.id not in photos:
            raise HTTPException(status_code=400, detail=f"Photo {item.id} does not belong to this campsite")
    if sorted(item.id for item in body.photos) != sorted(photos):
        raise HTTPException(status_code=400, detail="Reorder must list every photo of the campsite exactly once")
    if sorted(item.sort_order for item in body.photos) != list(range(len(photos))):
        raise HTTPException(status_code=400, detail=f"Sort orders must be 0 to {len(photos) - 1} without gaps")
    for item in body.photos:
        photos[item.id].sort_order = item.sort_order
    db.commit()
    ordered = sorted(photos.values(), key=lambda p: (p.sort_order, p.id))
    return success_response([schemas.PhotoResponse.model_validate(p) for p in ordered], "Photos reordered")


@router.patch(
    "/campsites/{campsite_id}/photos/{photo_id}/primary",
    response_model=schemas.ApiResponse[schemas.PhotoResponse],
)
def set_primary_photo(
    campsite_id: int,
    photo_id: int,
    db: Session = Depends(get_db),
    user: models.Profile = Depends(require_owner),
):
    campsite = _owned_campsite(db, campsite_id, user)
    photo = _campsite_photo(db, campsite, photo_id)
    for p in campsite.photos:
        p.is_primary = p.id == photo.id
    db.commit()
    db.refresh(photo)
    return success_response(schemas.PhotoResponse.model_validate(photo), "Primary photo updated")


@router.delete("/campsites/{campsite_id}/photos/{photo_id}")
def delete_photo(
    campsite_id: int,
    photo_id: int,
    db: Session = Depends(get_db),
    user: models.Profile = Depends(require_owner),
):
    campsite = _owned_campsite(db, campsite_id, user)
    photo = _campsite_photo(db, campsite, photo_id)
    url = photo.url
    db.delete(photo)
    db.commit()
    storage.delete_photo(url)
    return success_response({"id": photo_id}, "Photo deleted")


# ---------- Inquiry Endpoints ----------
def _inquiry_scope(db, user):
    query = db.query(models.Inquiry).join(models.Campsite)
    if user.user_role != models.UserRole.admin:
        query = query.filter(models.Campsite.owner_id == user.id)
    return query


def _owned_inquiry(db, inquiry_id, user):
    inquiry = _inquiry_scope(db, user).filter(models.Inquiry.id == inquiry_id).first()
    if not inquiry:
        raise HTTPException(status_code=404, detail="Inquiry not found")
    return inquiry


@router.get("/inquiries", response_model=schemas.InquiryListResponse)
def list_inquiries(
    status: Optional[models.InquiryStatus] = None,
    campsite_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    user: models.Profile = Depends(require_owner),
):
    query = _inquiry_scope(db, user)
    if campsite_id:
        query = query.filter(models.Inquiry.campsite_id == campsite_id)
    unread_count = query.filter(models.Inquiry.read_at.is_(None)).count()
    if status:
        query = query.filter(models.Inquiry.status == status)
    total = query.count()
    inquiries = (
        query.order_by(models.Inquiry.created_at.desc(), models.Inquiry.id.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
        .all()
    )
    body = paginated_response([schemas.InquiryResponse.model_validate(i) for i in inquiries], page, limit, total)
    body["unread_count"] = unread_count
    return body


@router.get("/inquiries/{inquiry_id}", response_model=schemas.ApiResponse[schemas.InquiryResponse])
def get_inquiry(inquiry_id: int, db: Session = Depends(get_db), user: models.Profile = Depends(require_owner)):
    inquiry = _owned_inquiry(db, inquiry_id, user)
    if inquiry.read_at is None:
        inquiry.read_at = datetime.utcnow()
        db.commit()
        db.refresh(inquiry)
    return success_response(schemas.InquiryResponse.model_validate(inquiry))


@router.post("/inquiries/{inquiry_id}/reply", response_model=schemas.ApiResponse[schemas.InquiryResponse])
def reply_to_inquiry(
    inquiry_id: int,
    body: schemas.InquiryReply,
    db: Session = Depends(get_db),
    user: models.Profile = Depends(require_owner),
):
    inquiry = _owned_inquiry(db, inquiry_id, user)
    inquiry.owner_reply = body.reply
    inquiry.replied_at = datetime.utcnow()
    inquiry.status = models.InquiryStatus.in_progress
    if inquiry.read_at is None:
        inquiry.read_at = inquiry.replied_at
    db.commit()
    db.refresh(inquiry)
    notifications.notify_inquiry_reply(inquiry, inquiry.campsite)
    return success_response(schemas.InquiryResponse.model_validate(inquiry), "Reply sent successfully")


@router.patch("/inquiries/{inquiry_id}/status", response_model=schemas.ApiResponse[schemas.InquiryResponse])
def update_inquiry_status(
    inquiry_id: int,
    body: schemas.InquiryStatusUpdate,
    db: Session = Depends(get_db),
    user: models.Profile = Depends(require_owner),
):
    inquiry = _owned_inquiry(db, inquiry_id, user)
    inquiry.status = body.status
    db.commit()
    db.refresh(inquiry)
    return success_response(schemas.InquiryResponse.model_validate(inquiry), "Inquiry status updated")
