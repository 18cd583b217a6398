from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.deps import get_clock
from app.core.clock import Clock
from app.schemas.promo import AvailablePromoOut, PromoPreviewOut, PromoValidateIn
from app.services import promo_ledger

router = APIRouter(tags=["promo"])

@router.post("/promo/validate", response_model=PromoPreviewOut)
def validate_promo(body: PromoValidateIn, db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    """Preview the discount a code would give; nothing is redeemed."""
    p = promo_ledger.preview(db, body.code, body.userEmail, body.orderValue, body.experienceId, clock.now())
    return PromoPreviewOut(
        code=p.code,
        description=p.description,
        discountType=p.discount_type,
        discountValue=p.discount_value,
        discountDisplay=p.discount_display,
        originalAmount=p.original_amount,
        discountAmount=p.discount_amount,
        finalAmount=p.final_amount,
        currency=p.currency,
    )

@router.get("/promo/available", response_model=list[AvailablePromoOut])
def available_promos(
    category: Optional[str] = None,
    experienceId: Optional[str] = None,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    items = promo_ledger.list_available(db, clock.now(), category=category, experience_id=experienceId)
    return [
        AvailablePromoOut(
            code=p.code,
            description=p.description,
            discountDisplay=promo_ledger.discount_display(p),
            minimumOrderValue=p.minimum_order_value,
            validUntil=p.valid_until.isoformat(),
            remainingUsage=p.remaining_usage,
            applicableCategories=list(p.applicable_categories or []),
        )
        for p in items
    ]
