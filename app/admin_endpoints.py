import logging
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

import models_sqlalchemy as models
import models_pydantic as schemas
import notifications
from auth import require_admin
from database import get_db
from utils import page_offset, paginated_response, success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


def log_moderation(db, admin, action_type, entity_type, entity_id, reason=None):
    db.add(models.ModerationLog(
        admin_id=admin.id,
        action_type=action_type,
        entity_type=entity_type,
        entity_id=entity_id,
        reason=reason,
    ))
    logger.info(f"Admin {admin.id} {action_type} {entity_type} {entity_id}")


def _result(entity_id, action, new_status=None):
    return schemas.ModerationResult(id=entity_id, action=action, new_status=new_status)


# ---------- Stats ----------
@router.get("/stats", response_model=schemas.ApiResponse[schemas.AdminStats])
def get_stats(db: Session = Depends(get_db), admin: models.Profile = Depends(require_admin)):
    def count(model, *criteria):
        return db.query(func.count(model.id)).filter(*criteria).scalar() or 0

    stats = schemas.AdminStats(
        pending_campsites=count(models.Campsite, models.Campsite.status == models.ApprovalStatus.pending),
        pending_owner_requests=count(models.OwnerRequest,
                                     models.OwnerRequest.status == models.ApprovalStatus.pending),
        reported_reviews=count(models.Review, models.Review.is_reported.is_(True),
                               models.Review.is_hidden.is_(False)),
        total_campsites=count(models.Campsite, models.Campsite.status == models.ApprovalStatus.approved),
        total_users=count(models.Profile),
        total_reviews=count(models.Review, models.Review.is_hidden.is_(False)),
    )
    return success_response(stats)


# ---------- Campsite Moderation Endpoints ----------
@router.get("/campsites/pending", response_model=schemas.PaginatedResponse[schemas.PendingCampsiteResponse])
def list_pending_campsites(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    sort_by: Literal["submitted_at", "name"] = "submitted_at",
    sort_order: Literal["asc", "desc"] = "desc",
    db: Session = Depends(get_db),
    admin: models.Profile = Depends(require_admin),
):
    query = db.query(models.Campsite).filter(models.Campsite.status == models.ApprovalStatus.pending)
    total = query.count()
    column = models.Campsite.name if sort_by == "name" else models.Campsite.created_at
    ordering = column.asc() if sort_order == "asc" else column.desc()
    campsites = query.order_by(ordering, models.Campsite.id).offset(page_offset(page, limit)).limit(limit).all()
    return paginated_response(
        [
            schemas.PendingCampsiteResponse(
                id=c.id,
                name=c.name,
                description=c.description,
                campsite_type=c.campsite_type,
                province_name=c.province.name_th,
                address=c.address,
                min_price=c.min_price,
                max_price=c.max_price,
                owner_id=c.owner_id,
                owner_name=c.owner.full_name,
                photo_count=len(c.photos),
                submitted_at=c.created_at,
            )
            for c in campsites
        ],
        page, limit, total,
    )


def _pending_campsite(db, campsite_id):
    campsite = db.query(models.Campsite).filter(
        models.Campsite.id == campsite_id,
        models.Campsite.status == models.ApprovalStatus.pending,
    ).first()
    if not campsite:
        raise HTTPException(status_code=404, detail="Campsite not found or not pending")
    return campsite


@router.post("/campsites/{campsite_id}/approve", response_model=schemas.ApiResponse[schemas.ModerationResult])
def approve_campsite(campsite_id: int, db: Session = Depends(get_db),
                     admin: models.Profile = Depends(require_admin)):
    campsite = _pending_campsite(db, campsite_id)
    campsite.status = models.ApprovalStatus.approved
    campsite.rejection_reason = None
    log_moderation(db, admin, "approve", "campsite", campsite.id)
    db.commit()
    notifications.notify_campsite_approved(campsite.owner, campsite)
    return success_response(_result(campsite.id, "approve", campsite.status.value),
                            "Campsite approved successfully")


@router.post("/campsites/{campsite_id}/reject", response_model=schemas.ApiResponse[schemas.ModerationResult])
def reject_campsite(campsite_id: int, body: schemas.RejectionRequest, db: Session = Depends(get_db),
                    admin: models.Profile = Depends(require_admin)):
    campsite = _pending_campsite(db, campsite_id)
    campsite.status = models.ApprovalStatus.rejected
    campsite.rejection_reason = body.rejection_reason
    log_moderation(db, admin, "reject", "campsite", campsite.id, body.rejection_reason)
    db.commit()
    notifications.notify_campsite_rejected(campsite.owner, campsite, body.rejection_reason)
    return success_response(_result(campsite.id, "reject", campsite.status.value), "Campsite rejected")


# ---------- Owner Request Endpoints ----------
def _owner_request_response(r):
    return schemas.OwnerRequestResponse(
        id=r.id,
        user_id=r.user_id,
        business_name=r.business_name,
        business_description=r.business_description,
        contact_phone=r.contact_phone,
        status=r.status,
        rejection_reason=r.rejection_reason,
        reviewed_at=r.reviewed_at,
        reviewed_by=r.reviewed_by,
        created_at=r.created_at,
        user_full_name=r.user.full_name,
    )


@router.get("/owner-requests", response_model=schemas.PaginatedResponse[schemas.OwnerRequestResponse])
def list_owner_requests(
    status: Literal["all", "pending", "approved", "rejected"] = "pending",
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    admin: models.Profile = Depends(require_admin),
):
    query = db.query(models.OwnerRequest)
    if status != "all":
        query = query.filter(models.OwnerRequest.status == models.ApprovalStatus(status))
    total = query.count()
    requests_ = (
        query.order_by(models.OwnerRequest.created_at.desc(), models.OwnerRequest.id.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
        .all()
    )
    return paginated_response([_owner_request_response(r) for r in requests_], page, limit, total)


def _pending_owner_request(db, request_id):
    owner_request = db.query(models.OwnerRequest).filter(
        models.OwnerRequest.id == request_id,
        models.OwnerRequest.status == models.ApprovalStatus.pending,
    ).first()
    if not owner_request:
        raise HTTPException(status_code=404, detail="Owner request not found or not pending")
    return owner_request


@router.post("/owner-requests/{request_id}/approve", response_model=schemas.ApiResponse[schemas.ModerationResult])
def approve_owner_request(request_id: int, db: Session = Depends(get_db),
                          admin: models.Profile = Depends(require_admin)):
    owner_request = _pending_owner_request(db, request_id)
    owner_request.status = models.ApprovalStatus.approved
    owner_request.reviewed_at = datetime.utcnow()
    owner_request.reviewed_by = admin.id
    if owner_request.user.user_role == models.UserRole.user:
        owner_request.user.user_role = models.UserRole.owner
    log_moderation(db, admin, "approve", "owner_request", owner_request.id)
    db.commit()
    notifications.notify_owner_request_approved(owner_request.user, owner_request)
    return success_response(_result(owner_request.id, "approve", owner_request.status.value),
                            "Owner request approved successfully")


@router.post("/owner-requests/{request_id}/reject", response_model=schemas.ApiResponse[schemas.ModerationResult])
def reject_owner_request(request_id: int, body: schemas.RejectionRequest, db: Session = Depends(get_db),
                         admin: models.Profile = Depends(require_admin)):
    owner_request = _pending_owner_request(db, request_id)
    owner_request.status = models.ApprovalStatus.rejected
    owner_request.rejection_reason = body.rejection_reason
    owner_request.reviewed_at = datetime.utcnow()
    owner_request.reviewed_by = admin.id
    log_moderation(db, admin, "reject", "owner_request", owner_request.id, body.rejection_reason)
    db.commit()
    notifications.notify_owner_request_rejected(owner_request.user, owner_request, body.rejection_reason)
    return success_response(_result(owner_request.id, "reject", owner_request.status.value),
                            "Owner request rejected")


# ---------- Review Moderation Endpoints ----------
@router.get("/reviews/reported", response_model=schemas.PaginatedResponse[schemas.ReportedReviewResponse])
def list_reported_reviews(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    sort_by: Literal["report_count", "created_at"] = "report_count",
    min_reports: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    admin: models.Profile = Depends(require_admin),
):
    query = db.query(models.Review).filter(
        models.Review.is_reported.is_(True),
        models.Review.is_hidden.is_(False),
    )
    if min_reports:
        query = query.filter(models.Review.report_count >= min_reports)
    total = query.count()
    if sort_by == "created_at":
        query = query.order_by(models.Review.created_at.desc(), models.Review.id.desc())
    else:
        query = query.order_by(models.Review.report_count.desc(), models.Review.created_at.desc())
    reviews = query.offset(page_offset(page, limit)).limit(limit).all()
    data = []
    for r in reviews:
        reports = sorted(r.reports, key=lambda rep: rep.created_at, reverse=True)
        data.append(schemas.ReportedReviewResponse(
            **schemas.ReviewResponse.model_validate(r).model_dump(),
            campsite_name=r.campsite.name,
            reviewer_name=r.user.full_name,
            reports=[
                schemas.ReportEntry(
                    id=rep.id,
                    user_id=rep.user_id,
                    reporter_name=rep.user.full_name,
                    reason=rep.reason,
                    details=rep.details,
                    created_at=rep.created_at,
                )
                for rep in reports
            ],
        ))
    return paginated_response(data, page, limit, total)


def _get_review(db, review_id):
    review = db.query(models.Review).filter(models.Review.id == review_id).first()
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")
    return review


@router.post("/reviews/{review_id}/hide", response_model=schemas.ApiResponse[schemas.ModerationResult])
def hide_review(review_id: int, body: schemas.HideReviewRequest, db: Session = Depends(get_db),
                admin: models.Profile = Depends(require_admin)):
    review = _get_review(db, review_id)
    review.is_hidden = True
    review.hidden_reason = body.hide_reason
    review.hidden_at = datetime.utcnow()
    review.hidden_by = admin.id
    log_moderation(db, admin, "hide", "review", review.id, body.hide_reason)
    db.commit()
    notifications.notify_review_hidden(review.user, review.campsite, body.hide_reason)
    return success_response(_result(review.id, "hide"), "Review hidden")


@router.post("/reviews/{review_id}/unhide", response_model=schemas.ApiResponse[schemas.ModerationResult])
def unhide_review(review_id: int, db: Session = Depends(get_db), admin: models.Profile = Depends(require_admin)):
    review = _get_review(db, review_id)
    review.is_hidden = False
    review.hidden_reason = None
    review.hidden_at = None
    review.hidden_by = None
    log_moderation(db, admin, "unhide", "review", review.id)
    db.commit()
    return success_response(_result(review.id, "unhide"), "Review restored")


@router.delete("/reviews/{review_id}", response_model=schemas.ApiResponse[schemas.ModerationResult])
def delete_review(review_id: int, db: Session = Depends(get_db), admin: models.Profile = Depends(require_admin)):
    review = _get_review(db, review_id)
    log_moderation(db, admin, "delete", "review", review.id)
    db.delete(review)
    db.commit()
    return success_response(_result(review_id, "delete"), "Review deleted")


@router.post("/reviews/{review_id}/dismiss", response_model=schemas.ApiResponse[schemas.ModerationResult])
def dismiss_reports(review_id: int, db: Session = Depends(get_db), admin: models.Profile = Depends(require_admin)):
    review = _get_review(db, review_id)
    db.query(models.ReviewReport).filter(models.ReviewReport.review_id == review.id).delete(
        synchronize_session=False
    )
    review.is_reported = False
    review.report_count = 0
    log_moderation(db, admin, "dismiss", "review", review.id)
    db.commit()
    return success_response(_result(review.id, "dismiss"), "Reports dismissed")
