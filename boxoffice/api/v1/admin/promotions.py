from datetime import timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from boxoffice.db.session import get_db
from boxoffice.api.deps import get_current_admin_user, require_promotions
from boxoffice.models.promotion import Promotion
from boxoffice.schemas.common import OkResponse
from boxoffice.schemas.promotion import (
    PromotionCreate,
    PromotionUpdate,
    PromotionResponse,
    PromotionListResponse,
    PromotionWithStats,
    Promotion as PromotionSchema,
)
from boxoffice.utils.promotions import normalize_code, usage_stats

router = APIRouter(
    prefix="/admin/promotions",
    tags=["Admin - Promotions"],
    dependencies=[Depends(get_current_admin_user), Depends(require_promotions)],
)


def _get_promotion(db: Session, id: int) -> Promotion:
    promotion = db.get(Promotion, id)
    if not promotion:
        raise HTTPException(status_code=404, detail="Promotion not found")
    return promotion


def _to_column_values(values: dict) -> dict:
    """Normalize a validated payload into column values."""
    if "code" in values and values["code"] is not None:
        values["code"] = normalize_code(values["code"])
        if not values["code"]:
            raise HTTPException(status_code=400, detail="Missing code")
    if values.get("type") is not None:
        values["type"] = values["type"].value
    for field in ("starts_at", "ends_at"):
        value = values.get(field)
        if value is not None and value.tzinfo is None:
            values[field] = value.replace(tzinfo=timezone.utc)
    return values


def _commit_or_conflict(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Promotion code already exists",
        )


@router.get("", response_model=PromotionListResponse)
def list_promotions(
    status_filter: str = Query(
        "ACTIVE", alias="status", description="ACTIVE, DISABLED or ALL"
    ),
    db: Session = Depends(get_db),
):
    """Promotions with redemption counts and distinct buyers, newest first."""
    query = db.query(Promotion)
    wanted = status_filter.strip().upper()
    if wanted == "ACTIVE":
        query = query.filter(Promotion.active == True)  # noqa: E712
    elif wanted == "DISABLED":
        query = query.filter(Promotion.active == False)  # noqa: E712

    results = []
    for promotion in query.order_by(Promotion.created_at.desc(), Promotion.id.desc()).all():
        usage_count, unique_users = usage_stats(db, promotion.id)
        item = PromotionWithStats.model_validate(promotion)
        item.usage_count = usage_count
        item.unique_users = unique_users
        results.append(item)

    return PromotionListResponse(promotions=results)


@router.post("", response_model=PromotionResponse)
def create_promotion(data: PromotionCreate, db: Session = Depends(get_db)):
    values = _to_column_values(data.model_dump())
    if db.query(Promotion.id).filter(Promotion.code == values["code"]).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Promotion code already exists",
        )
    promotion = Promotion(**values)
    db.add(promotion)
    _commit_or_conflict(db)
    db.refresh(promotion)
    return PromotionResponse(promotion=PromotionSchema.model_validate(promotion))


@router.patch("/{id}", response_model=PromotionResponse)
def update_promotion(id: int, data: PromotionUpdate, db: Session = Depends(get_db)):
    promotion = _get_promotion(db, id)

    changes = _to_column_values(data.model_dump(exclude_unset=True))
    for field in ("code", "type", "value", "active"):
        if field in changes and changes[field] is None:
            del changes[field]

    for field, value in changes.items():
        setattr(promotion, field, value)

    _commit_or_conflict(db)
    db.refresh(promotion)
    return PromotionResponse(promotion=PromotionSchema.model_validate(promotion))


@router.delete("/{id}", response_model=OkResponse)
def delete_promotion(id: int, db: Session = Depends(get_db)):
    """Soft delete: the code stops working, redemption history stays."""
    promotion = _get_promotion(db, id)
    promotion.active = False
    db.commit()
    return OkResponse()
