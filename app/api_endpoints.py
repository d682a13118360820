import logging
from datetime import datetime
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Depends, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from fastapi.staticfiles import StaticFiles
from sqlalchemy import func, literal, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

import models_sqlalchemy as models
import models_pydantic as schemas
import notifications
import seo
from admin_endpoints import router as admin_router
from auth import get_current_user, get_optional_user, can_manage
from dashboard_endpoints import router as dashboard_router
from database import get_db
from error_boundary import server_error_body
from settings import get_cors_origins, get_media_base_url, get_upload_dir
from utils import (
    comma_string_to_list, error_response, page_offset, paginated_response, success_response, thumbnail_url,
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Camping Thailand API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(admin_router)
app.include_router(dashboard_router)
app.mount(get_media_base_url(), StaticFiles(directory=get_upload_dir(), check_dir=False), name="media")


# ---------- Error Handlers ----------
@app.exception_handler(StarletteHTTPException)
def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content=error_response(exc.detail), headers=exc.headers)


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err["loc"] if p not in ("body", "query", "path", "form"))
        msg = err["msg"].removeprefix("Value error, ")
        details.append({"field": field, "message": msg})
    first = details[0] if details else {"field": "", "message": "Validation failed"}
    message = f"{first['field']}: {first['message']}" if first["field"] else first["message"]
    body = error_response(message)
    body["details"] = details
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body)


@app.exception_handler(IntegrityError)
def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning(f"Constraint violation on {request.method} {request.url.path}: {exc.orig}")
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=error_response("Conflict with existing data"))


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception):
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=server_error_body(exc))


# ---------- Profile Endpoints ----------
@app.get("/api/auth/me", response_model=schemas.ApiResponse[schemas.ProfileResponse])
def read_me(user: models.Profile = Depends(get_current_user)):
    return success_response(schemas.ProfileResponse.model_validate(user))


# ---------- Province Endpoints ----------
@app.get("/api/provinces", response_model=schemas.ApiResponse[List[schemas.ProvinceResponse]])
def list_provinces(db: Session = Depends(get_db)):
    provinces = db.query(models.Province).order_by(models.Province.name_en).all()
    return success_response([schemas.ProvinceResponse.model_validate(p) for p in provinces])


# ---------- Campsite Endpoints ----------
def _rating_stats(db):
    return (
        db.query(
            models.Review.campsite_id.label("campsite_id"),
            func.avg(models.Review.rating_overall).label("rating_average"),
            func.count(models.Review.id).label("review_count"),
        )
        .filter(models.Review.is_hidden.is_(False))
        .group_by(models.Review.campsite_id)
        .subquery()
    )


def _has_amenity(slug):
    # amenities are stored as "wifi,parking,shower"
    return literal(",").concat(models.Campsite.amenities).concat(",").like(f"%,{slug},%")


@app.get("/api/campsites", response_model=schemas.PaginatedResponse[schemas.CampsiteSummary])
def search_campsites(
    q: Optional[str] = None,
    province: Optional[str] = None,
    campsite_type: Optional[models.CampsiteType] = Query(None, alias="type"),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    amenities: Optional[str] = None,
    min_rating: Optional[float] = Query(None, ge=1, le=5),
    sort: schemas.SearchSort = schemas.SearchSort.newest,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    db: Session = Depends(get_db),
):
    if min_price is not None and max_price is not None and min_price > max_price:
        raise HTTPException(status_code=400, detail="min_price must not exceed max_price")
    ratings = _rating_stats(db)
    query = (
        db.query(models.Campsite, ratings.c.rating_average, ratings.c.review_count)
        .select_from(models.Campsite)
        .join(models.Province)
        .outerjoin(ratings, ratings.c.campsite_id == models.Campsite.id)
        .filter(models.Campsite.status == models.ApprovalStatus.approved)
    )
    if q:
        pattern = f"%{q.strip()}%"
        query = query.filter(or_(models.Campsite.name.ilike(pattern), models.Campsite.description.ilike(pattern)))
    if province:
        query = query.filter(models.Province.slug == province)
    if campsite_type:
        query = query.filter(models.Campsite.campsite_type == campsite_type)
    if min_price is not None:
        query = query.filter(models.Campsite.min_price >= min_price)
    if max_price is not None:
        query = query.filter(models.Campsite.max_price <= max_price)
    for slug in comma_string_to_list(amenities):
        query = query.filter(_has_amenity(slug))
    if min_rating is not None:
        query = query.filter(ratings.c.rating_average >= min_rating)
    total = query.count()

    if sort == schemas.SearchSort.rating:
        order = [func.coalesce(ratings.c.rating_average, 0).desc()]
    elif sort == schemas.SearchSort.price_asc:
        order = [models.Campsite.min_price.is_(None), models.Campsite.min_price.asc()]
    elif sort == schemas.SearchSort.price_desc:
        order = [models.Campsite.min_price.is_(None), models.Campsite.min_price.desc()]
    else:
        order = [models.Campsite.updated_at.desc()]
    rows = (
        query.order_by(*order, models.Campsite.id.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
        .all()
    )
    return paginated_response(
        [
            schemas.CampsiteSummary(
                id=c.id,
                name=c.name,
                campsite_type=c.campsite_type,
                province_name=c.province.name_th,
                min_price=c.min_price,
                max_price=c.max_price,
                thumbnail_url=thumbnail_url(c.photos),
                rating_average=round(avg, 1) if avg is not None else None,
                review_count=count or 0,
            )
            for c, avg, count in rows
        ],
        page, limit, total,
    )


@app.get("/api/campsites/{campsite_id}", response_model=schemas.ApiResponse[schemas.CampsiteResponse])
def get_campsite(
    campsite_id: int,
    db: Session = Depends(get_db),
    user: Optional[models.Profile] = Depends(get_optional_user),
):
    campsite = db.query(models.Campsite).filter(models.Campsite.id == campsite_id).first()
    if not campsite:
        raise HTTPException(status_code=404, detail="Campsite not found")
    if campsite.status != models.ApprovalStatus.approved and not (user and can_manage(user, campsite)):
        raise HTTPException(status_code=404, detail="Campsite not found")
    return success_response(schemas.CampsiteResponse.model_validate(campsite))


# ---------- Review Endpoints ----------
@app.get("/api/campsites/{campsite_id}/reviews/summary", response_model=schemas.ApiResponse[schemas.ReviewSummary])
def review_summary(campsite_id: int, db: Session = Depends(get_db)):
    if not db.query(models.Campsite.id).filter(models.Campsite.id == campsite_id).first():
        raise HTTPException(status_code=404, detail="Campsite not found")
    rows = (
        db.query(models.Review.rating_overall, func.count(models.Review.id))
        .filter(models.Review.campsite_id == campsite_id, models.Review.is_hidden.is_(False))
        .group_by(models.Review.rating_overall)
        .all()
    )
    distribution = {star: 0 for star in range(1, 6)}
    for rating, count in rows:
        if rating in distribution:
            distribution[rating] = count
    total = sum(distribution.values())
    average = round(sum(star * n for star, n in distribution.items()) / total, 1) if total else 0
    percentages = {star: round(n * 100 / total) if total else 0 for star, n in distribution.items()}
    return success_response(schemas.ReviewSummary(
        average_rating=average,
        total_count=total,
        rating_distribution=distribution,
        rating_percentages=percentages,
    ))


@app.get("/api/campsites/{campsite_id}/reviews", response_model=schemas.PaginatedResponse[schemas.ReviewResponse])
def list_reviews(
    campsite_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
):
    query = db.query(models.Review).filter(
        models.Review.campsite_id == campsite_id,
        models.Review.is_hidden.is_(False),
    )
    total = query.count()
    reviews = (
        query.order_by(models.Review.created_at.desc(), models.Review.id.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
        .all()
    )
    return paginated_response([schemas.ReviewResponse.model_validate(r) for r in reviews], page, limit, total)


@app.post(
    "/api/campsites/{campsite_id}/reviews",
    response_model=schemas.ApiResponse[schemas.ReviewResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_review(
    campsite_id: int,
    review: schemas.ReviewCreate,
    db: Session = Depends(get_db),
    user: models.Profile = Depends(get_current_user),
):
    campsite = db.query(models.Campsite).filter(
        models.Campsite.id == campsite_id,
        models.Campsite.status == models.ApprovalStatus.approved,
    ).first()
    if not campsite:
        raise HTTPException(status_code=404, detail="Campsite not found")
    existing = db.query(models.Review).filter(
        models.Review.campsite_id == campsite_id,
        models.Review.user_id == user.id,
    ).first()
    if existing:
        raise HTTPException(status_code=409, detail="You have already reviewed this campsite")
    db_review = models.Review(
        campsite_id=campsite_id,
        user_id=user.id,
        rating_overall=review.rating_overall,
        title=review.title,
        content=review.content,
    )
    db.add(db_review)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="You have already reviewed this campsite")
    db.refresh(db_review)
    return success_response(schemas.ReviewResponse.model_validate(db_review), "Review submitted successfully")


@app.post("/api/reviews/{review_id}/helpful", response_model=schemas.ApiResponse[schemas.HelpfulVoteResult])
def toggle_helpful_vote(
    review_id: int,
    db: Session = Depends(get_db),
    user: models.Profile = Depends(get_current_user),
):
    review = db.query(models.Review).filter(
        models.Review.id == review_id,
        models.Review.is_hidden.is_(False),
    ).first()
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")
    vote = db.query(models.ReviewHelpful).filter(
        models.ReviewHelpful.review_id == review_id,
        models.ReviewHelpful.user_id == user.id,
    ).first()
    if vote:
        db.delete(vote)
        voted = False
    else:
        db.add(models.ReviewHelpful(review_id=review_id, user_id=user.id))
        voted = True
    db.flush()
    review.helpful_count = db.query(func.count(models.ReviewHelpful.user_id)).filter(
        models.ReviewHelpful.review_id == review_id
    ).scalar()
    db.commit()
    return success_response(schemas.HelpfulVoteResult(review_id=review_id, voted=voted,
                                                      helpful_count=review.helpful_count))


def _already_reported(db, review_id, user_id):
    return db.query(models.ReviewReport).filter(
        models.ReviewReport.review_id == review_id,
        models.ReviewReport.user_id == user_id,
    ).first() is not None


@app.post("/api/reviews/{review_id}/report", status_code=status.HTTP_201_CREATED)
def report_review(
    review_id: int,
    report: schemas.ReportCreate,
    db: Session = Depends(get_db),
    user: models.Profile = Depends(get_current_user),
):
    review = db.query(models.Review).filter(models.Review.id == review_id).first()
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")
    if review.user_id == user.id:
        raise HTTPException(status_code=400, detail="You cannot report your own review")
    if _already_reported(db, review_id, user.id):
        raise HTTPException(status_code=409, detail="You have already reported this review")
    db.add(models.ReviewReport(review_id=review_id, user_id=user.id, reason=report.reason, details=report.details))
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="You have already reported this review")
    review.report_count = db.query(func.count(models.ReviewReport.id)).filter(
        models.ReviewReport.review_id == review_id
    ).scalar()
    review.is_reported = True
    db.commit()
    logger.info(f"Review {review_id} reported by user {user.id} ({report.reason.value})")
    return success_response({"review_id": review_id, "report_count": review.report_count},
                            "Review reported successfully")


# ---------- Inquiry Endpoints ----------
@app.post(
    "/api/inquiries",
    response_model=schemas.ApiResponse[schemas.InquiryResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_inquiry(inquiry: schemas.InquiryCreate, db: Session = Depends(get_db)):
    campsite = db.query(models.Campsite).filter(
        models.Campsite.id == inquiry.campsite_id,
        models.Campsite.status == models.ApprovalStatus.approved,
    ).first()
    if not campsite:
        raise HTTPException(status_code=404, detail="Campsite not found")
    if inquiry.check_in and inquiry.check_out and inquiry.check_in >= inquiry.check_out:
        raise HTTPException(status_code=400, detail="check_out must be after check_in")
    db_inquiry = models.Inquiry(
        campsite_id=inquiry.campsite_id,
        guest_name=inquiry.guest_name,
        guest_email=inquiry.guest_email,
        guest_phone=inquiry.guest_phone,
        message=inquiry.message,
        check_in=inquiry.check_in,
        check_out=inquiry.check_out,
    )
    db.add(db_inquiry)
    db.commit()
    db.refresh(db_inquiry)
    notifications.notify_new_inquiry(campsite.owner, campsite, db_inquiry)
    return success_response(schemas.InquiryResponse.model_validate(db_inquiry), "Inquiry sent successfully")


# ---------- Owner Request Endpoints ----------
@app.post(
    "/api/owner-requests",
    response_model=schemas.ApiResponse[schemas.OwnerRequestResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_owner_request(
    request_in: schemas.OwnerRequestCreate,
    db: Session = Depends(get_db),
    user: models.Profile = Depends(get_current_user),
):
    if user.user_role != models.UserRole.user:
        raise HTTPException(status_code=400, detail="You are already an owner")
    pending = db.query(models.OwnerRequest).filter(
        models.OwnerRequest.user_id == user.id,
        models.OwnerRequest.status == models.ApprovalStatus.pending,
    ).first()
    if pending:
        raise HTTPException(status_code=409, detail="You already have a pending owner request")
    db_request = models.OwnerRequest(
        user_id=user.id,
        business_name=request_in.business_name,
        business_description=request_in.business_description,
        contact_phone=request_in.contact_phone,
    )
    db.add(db_request)
    db.commit()
    db.refresh(db_request)
    return success_response(
        schemas.OwnerRequestResponse(
            id=db_request.id,
            user_id=db_request.user_id,
            business_name=db_request.business_name,
            business_description=db_request.business_description,
            contact_phone=db_request.contact_phone,
            status=db_request.status,
            created_at=db_request.created_at,
            user_full_name=user.full_name,
        ),
        "Owner request submitted",
    )


# ---------- Wishlist Endpoints ----------
def _wishlist_item(item):
    return schemas.WishlistItemResponse(
        id=item.id,
        campsite_id=item.campsite_id,
        campsite_name=item.campsite.name,
        created_at=item.created_at,
    )


@app.get("/api/wishlist", response_model=schemas.ApiResponse[List[schemas.WishlistItemResponse]])
def list_wishlist(db: Session = Depends(get_db), user: models.Profile = Depends(get_current_user)):
    items = (
        db.query(models.Wishlist)
        .filter(models.Wishlist.user_id == user.id)
        .order_by(models.Wishlist.created_at.desc(), models.Wishlist.id.desc())
        .all()
    )
    return success_response([_wishlist_item(i) for i in items])


@app.post(
    "/api/wishlist",
    response_model=schemas.ApiResponse[schemas.WishlistItemResponse],
    status_code=status.HTTP_201_CREATED,
)
def add_to_wishlist(
    item: schemas.WishlistAdd,
    db: Session = Depends(get_db),
    user: models.Profile = Depends(get_current_user),
):
    campsite = db.query(models.Campsite).filter(
        models.Campsite.id == item.campsite_id,
        models.Campsite.status == models.ApprovalStatus.approved,
    ).first()
    if not campsite:
        raise HTTPException(status_code=404, detail="Campsite not found")
    existing = db.query(models.Wishlist).filter(
        models.Wishlist.user_id == user.id,
        models.Wishlist.campsite_id == item.campsite_id,
    ).first()
    if existing:
        raise HTTPException(status_code=409, detail="Campsite already in wishlist")
    db_item = models.Wishlist(user_id=user.id, campsite_id=item.campsite_id)
    db.add(db_item)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Campsite already in wishlist")
    db.refresh(db_item)
    return success_response(_wishlist_item(db_item), "Added to wishlist")


@app.delete("/api/wishlist/{campsite_id}")
def remove_from_wishlist(
    campsite_id: int,
    db: Session = Depends(get_db),
    user: models.Profile = Depends(get_current_user),
):
    item = db.query(models.Wishlist).filter(
        models.Wishlist.user_id == user.id,
        models.Wishlist.campsite_id == campsite_id,
    ).first()
    if not item:
        raise HTTPException(status_code=404, detail="Campsite not in wishlist")
    db.delete(item)
    db.commit()
    return success_response({"campsite_id": campsite_id}, "Removed from wishlist")


# ---------- SEO Endpoints ----------
@app.get("/robots.txt", response_class=PlainTextResponse)
def robots_txt():
    return seo.generate_robots_txt()


@app.get("/sitemap.xml")
def sitemap_xml(db: Session = Depends(get_db)):
    campsites = (
        db.query(models.Campsite)
        .filter(models.Campsite.status == models.ApprovalStatus.approved)
        .order_by(models.Campsite.id)
        .all()
    )
    provinces = db.query(models.Province).order_by(models.Province.slug).all()
    entries = seo.build_sitemap_entries(campsites, provinces, list(models.CampsiteType), now=datetime.utcnow())
    return Response(content=seo.render_sitemap_xml(entries), media_type="application/xml")


if __name__ == "__main__":
    import uvicorn
    from database import create_tables

    create_tables()
    uvicorn.run("api_endpoints:app", host="0.0.0.0", port=8000, reload=True)
