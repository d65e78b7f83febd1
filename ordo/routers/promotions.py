from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List

from ordo.db import get_db
from ordo.deps import get_catalog, get_notifier
from ordo.models.core import Product, Promotion, PromotionProduct, PromotionScope
from ordo.schemas.catalog import CatalogPromotion, PromotionIn
from ordo.services.catalog_feed import CatalogSnapshot
from ordo.services.notifier import CATALOG_CHANGED, ChangeNotifier
from ordo.services.pricing import is_promotion_active
from ordo.util import clock

router = APIRouter(prefix="/admin/promotions", tags=["promotions"])


def _promo_out(db: Session, p: Promotion) -> CatalogPromotion:
    ids = [l.product_id for l in db.query(PromotionProduct).filter(PromotionProduct.promotion_id == p.id).all()]
    return CatalogPromotion(
        id=p.id,
        name=p.name,
        discount_kind=p.discount_kind,
        discount_value=p.discount_value,
        scope=p.scope,
        product_ids=ids,
        start_date=p.start_date,
        end_date=p.end_date,
    )


def _apply(db: Session, p: Promotion, body: PromotionIn):
    if body.start_date and body.end_date and body.end_date < body.start_date:
        raise HTTPException(422, detail="end_date is before start_date")
    for k, v in body.model_dump(exclude={"product_ids"}).items():
        setattr(p, k, v)
    db.query(PromotionProduct).filter(PromotionProduct.promotion_id == p.id).delete()
    if body.scope == PromotionScope.SPECIFIC_PRODUCTS:
        for pid in dict.fromkeys(body.product_ids):
            if not db.get(Product, pid):
                raise HTTPException(404, detail=f"product {pid} not found")
            db.add(PromotionProduct(promotion_id=p.id, product_id=pid))


@router.get("", response_model=List[CatalogPromotion])
def list_promotions(db: Session = Depends(get_db)):
    rows = db.query(Promotion).order_by(Promotion.created_at.asc(), Promotion.name.asc()).all()
    return [_promo_out(db, p) for p in rows]


@router.get("/active", response_model=List[CatalogPromotion])
def active_promotions(snap: CatalogSnapshot = Depends(get_catalog)):
    """Promotions in effect right now, in the order pricing consults them."""
    now = clock.now()
    return [p for p in snap.promotions if is_promotion_active(p, now)]


@router.post("", response_model=CatalogPromotion)
def create_promotion(body: PromotionIn, db: Session = Depends(get_db), notifier: ChangeNotifier = Depends(get_notifier)):
    p = Promotion(name=body.name, discount_kind=body.discount_kind, discount_value=body.discount_value)
    db.add(p)
    db.flush()
    _apply(db, p, body)
    db.commit()
    out = _promo_out(db, p)
    notifier.publish(CATALOG_CHANGED)
    return out


@router.put("/{promotion_id}", response_model=CatalogPromotion)
def update_promotion(promotion_id: str, body: PromotionIn, db: Session = Depends(get_db),
                     notifier: ChangeNotifier = Depends(get_notifier)):
    p = db.get(Promotion, promotion_id)
    if not p:
        raise HTTPException(404, detail="promotion not found")
    _apply(db, p, body)
    db.commit()
    out = _promo_out(db, p)
    notifier.publish(CATALOG_CHANGED)
    return out


@router.delete("/{promotion_id}")
def delete_promotion(promotion_id: str, db: Session = Depends(get_db), notifier: ChangeNotifier = Depends(get_notifier)):
    p = db.get(Promotion, promotion_id)
    if not p:
        raise HTTPException(404, detail="promotion not found")
    db.query(PromotionProduct).filter(PromotionProduct.promotion_id == promotion_id).delete()
    db.delete(p)
    db.commit()
    notifier.publish(CATALOG_CHANGED)
    return {"ok": True, "id": promotion_id}
