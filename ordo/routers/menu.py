from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List

from ordo.db import get_db
from ordo.deps import get_assistant, get_catalog, get_notifier
from ordo.models.core import (
    Category,
    Personalization,
    PersonalizationOption,
    Product,
    ProductPersonalization,
)
from ordo.schemas.assistant import DescribeIn, DescribeOut
from ordo.schemas.catalog import (
    AvailabilityIn,
    CatalogCategory,
    CatalogProduct,
    CategoryIn,
    GroupOption,
    MenuOut,
    OptionIn,
    PersonalizationGroup,
    PersonalizationIn,
    PricedProduct,
    ProductDetailOut,
    ProductIn,
)
from ordo.schemas.orders import ConfigureIn, ConfigureOut
from ordo.services.assistant import Assistant
from ordo.services.catalog_feed import CatalogSnapshot
from ordo.services.notifier import CATALOG_CHANGED, ChangeNotifier
from ordo.services.personalization import PersonalizationSelector
from ordo.services.pricing import price_of
from ordo.services.schedule import is_open_now
from ordo.util import clock

router = APIRouter(prefix="/menu", tags=["menu"])
admin_router = APIRouter(prefix="/admin/menu", tags=["admin-menu"])


# ---------- helpers ----------

def priced(product: CatalogProduct, snap: CatalogSnapshot, now) -> PricedProduct:
    price, promo = price_of(product, snap.promotions, now)
    return PricedProduct(
        **product.model_dump(),
        effective_price=price,
        promotion_id=promo.id if promo else None,
        promotion_name=promo.name if promo else None,
    )


def _catalog_changed(notifier: ChangeNotifier):
    notifier.publish(CATALOG_CHANGED)


def _product_out(db: Session, p: Product) -> CatalogProduct:
    links = (
        db.query(ProductPersonalization)
        .filter(ProductPersonalization.product_id == p.id)
        .order_by(ProductPersonalization.position.asc())
        .all()
    )
    return CatalogProduct(
        id=p.id,
        name=p.name,
        description=p.description,
        price=p.price,
        image_url=p.image_url,
        category_id=p.category_id,
        available=bool(p.available),
        personalization_ids=[l.personalization_id for l in links],
    )


def _group_out(db: Session, g: Personalization) -> PersonalizationGroup:
    opts = (
        db.query(PersonalizationOption)
        .filter(PersonalizationOption.personalization_id == g.id)
        .order_by(PersonalizationOption.position.asc())
        .all()
    )
    return PersonalizationGroup(
        id=g.id,
        name=g.name,
        label=g.label,
        options=[GroupOption(id=o.id, name=o.name, price=o.price, available=bool(o.available)) for o in opts],
        allow_repetition=bool(g.allow_repetition),
        min_selection=g.min_selection or 0,
        max_selection=g.max_selection,
    )


def _link_groups(db: Session, product_id: str, group_ids: List[str]):
    db.query(ProductPersonalization).filter(ProductPersonalization.product_id == product_id).delete()
    for pos, gid in enumerate(dict.fromkeys(group_ids)):
        if not db.get(Personalization, gid):
            raise HTTPException(404, detail=f"personalization {gid} not found")
        db.add(ProductPersonalization(product_id=product_id, personalization_id=gid, position=pos))


# ---------- public menu ----------

@router.get("", response_model=MenuOut)
def get_menu(snap: CatalogSnapshot = Depends(get_catalog)):
    """Full menu with promotion-adjusted prices at the current instant."""
    now = clock.now()
    return MenuOut(
        categories=list(snap.categories),
        products=[priced(p, snap, now) for p in snap.products],
        personalizations=list(snap.personalizations),
        is_open=is_open_now(snap.settings, now),
    )


@router.get("/products/{product_id}", response_model=ProductDetailOut)
def get_product(product_id: str, snap: CatalogSnapshot = Depends(get_catalog)):
    p = snap.product(product_id)
    if not p:
        raise HTTPException(404, detail="product not found")
    return ProductDetailOut(product=priced(p, snap, clock.now()), personalizations=snap.groups_for(p))


@router.post("/products/{product_id}/configure", response_model=ConfigureOut)
def configure_product(
    product_id: str,
    body: ConfigureIn,
    snap: CatalogSnapshot = Depends(get_catalog),
):
    """
    Preview a personalization: replays the picked option ids as toggles and
    prices the result. Groups still under their minimum are listed in
    ``missing`` instead of failing.
    """
    p = snap.product(product_id)
    if not p:
        raise HTTPException(404, detail="product not found")
    sel = PersonalizationSelector.from_choices(snap.groups_for(p), body.option_ids)
    unit_price, _ = price_of(p, snap.promotions, clock.now())
    extra = sel.incremental_price()
    return ConfigureOut(
        product_id=p.id,
        selections=sel.selections(),
        options=sel.snapshot(),
        unit_price=unit_price,
        options_price=extra,
        unit_total=unit_price + extra,
        missing=sel.missing(),
    )


# ---------- admin: categories ----------

@admin_router.get("/categories", response_model=List[CatalogCategory])
def list_categories(db: Session = Depends(get_db)):
    rows = db.query(Category).order_by(Category.created_at.asc()).all()
    return [CatalogCategory(id=c.id, name=c.name) for c in rows]


@admin_router.post("/categories", response_model=CatalogCategory)
def create_category(body: CategoryIn, db: Session = Depends(get_db), notifier: ChangeNotifier = Depends(get_notifier)):
    c = Category(name=body.name)
    db.add(c)
    db.commit()
    db.refresh(c)
    _catalog_changed(notifier)
    return CatalogCategory(id=c.id, name=c.name)


@admin_router.put("/categories/{category_id}", response_model=CatalogCategory)
def rename_category(category_id: str, body: CategoryIn, db: Session = Depends(get_db),
                    notifier: ChangeNotifier = Depends(get_notifier)):
    c = db.get(Category, category_id)
    if not c:
        raise HTTPException(404, detail="category not found")
    c.name = body.name
    db.commit()
    _catalog_changed(notifier)
    return CatalogCategory(id=c.id, name=c.name)


@admin_router.delete("/categories/{category_id}")
def delete_category(category_id: str, db: Session = Depends(get_db), notifier: ChangeNotifier = Depends(get_notifier)):
    c = db.get(Category, category_id)
    if not c:
        raise HTTPException(404, detail="category not found")
    if db.query(Product).filter(Product.category_id == category_id).first():
        raise HTTPException(409, detail="category still has products")
    db.delete(c)
    db.commit()
    _catalog_changed(notifier)
    return {"ok": True, "id": category_id}


# ---------- admin: products ----------

@admin_router.post("/products", response_model=CatalogProduct)
def create_product(body: ProductIn, db: Session = Depends(get_db), notifier: ChangeNotifier = Depends(get_notifier)):
    if not db.get(Category, body.category_id):
        raise HTTPException(404, detail="category not found")
    p = Product(**body.model_dump(exclude={"personalization_ids"}))
    db.add(p)
    db.flush()
    _link_groups(db, p.id, body.personalization_ids)
    db.commit()
    db.refresh(p)
    out = _product_out(db, p)
    _catalog_changed(notifier)
    return out


@admin_router.put("/products/{product_id}", response_model=CatalogProduct)
def update_product(product_id: str, body: ProductIn, db: Session = Depends(get_db),
                   notifier: ChangeNotifier = Depends(get_notifier)):
    p = db.get(Product, product_id)
    if not p:
        raise HTTPException(404, detail="product not found")
    if not db.get(Category, body.category_id):
        raise HTTPException(404, detail="category not found")
    for k, v in body.model_dump(exclude={"personalization_ids"}).items():
        setattr(p, k, v)
    _link_groups(db, p.id, body.personalization_ids)
    db.commit()
    out = _product_out(db, p)
    _catalog_changed(notifier)
    return out


@admin_router.patch("/products/{product_id}/availability", response_model=CatalogProduct)
def set_product_availability(product_id: str, body: AvailabilityIn, db: Session = Depends(get_db),
                             notifier: ChangeNotifier = Depends(get_notifier)):
    p = db.get(Product, product_id)
    if not p:
        raise HTTPException(404, detail="product not found")
    p.available = body.available
    db.commit()
    out = _product_out(db, p)
    _catalog_changed(notifier)
    return out


@admin_router.delete("/products/{product_id}")
def delete_product(product_id: str, db: Session = Depends(get_db), notifier: ChangeNotifier = Depends(get_notifier)):
    p = db.get(Product, product_id)
    if not p:
        raise HTTPException(404, detail="product not found")
    db.query(ProductPersonalization).filter(ProductPersonalization.product_id == product_id).delete()
    db.delete(p)
    db.commit()
    _catalog_changed(notifier)
    return {"ok": True, "id": product_id}


@admin_router.post("/products/describe", response_model=DescribeOut)
async def describe_product(body: DescribeIn, assistant: Assistant = Depends(get_assistant)):
    text = await assistant.describe_product(body.name or "", body.category or "", body.current or "")
    return DescribeOut(description=text)


# ---------- admin: personalizations ----------

@admin_router.get("/personalizations", response_model=List[PersonalizationGroup])
def list_personalizations(db: Session = Depends(get_db)):
    rows = db.query(Personalization).order_by(Personalization.created_at.asc()).all()
    return [_group_out(db, g) for g in rows]


@admin_router.post("/personalizations", response_model=PersonalizationGroup)
def create_personalization(body: PersonalizationIn, db: Session = Depends(get_db),
                           notifier: ChangeNotifier = Depends(get_notifier)):
    g = Personalization(**body.model_dump(exclude={"options"}))
    db.add(g)
    db.flush()
    for pos, opt in enumerate(body.options):
        db.add(PersonalizationOption(personalization_id=g.id, position=pos, **opt.model_dump()))
    db.commit()
    out = _group_out(db, g)
    _catalog_changed(notifier)
    return out


@admin_router.put("/personalizations/{group_id}", response_model=PersonalizationGroup)
def replace_personalization(group_id: str, body: PersonalizationIn, db: Session = Depends(get_db),
                            notifier: ChangeNotifier = Depends(get_notifier)):
    """Replaces the group definition and its whole option list."""
    g = db.get(Personalization, group_id)
    if not g:
        raise HTTPException(404, detail="personalization not found")
    for k, v in body.model_dump(exclude={"options"}).items():
        setattr(g, k, v)
    db.query(PersonalizationOption).filter(PersonalizationOption.personalization_id == group_id).delete()
    for pos, opt in enumerate(body.options):
        db.add(PersonalizationOption(personalization_id=g.id, position=pos, **opt.model_dump()))
    db.commit()
    out = _group_out(db, g)
    _catalog_changed(notifier)
    return out


@admin_router.post("/personalizations/{group_id}/options", response_model=PersonalizationGroup)
def add_option(group_id: str, body: OptionIn, db: Session = Depends(get_db),
               notifier: ChangeNotifier = Depends(get_notifier)):
    g = db.get(Personalization, group_id)
    if not g:
        raise HTTPException(404, detail="personalization not found")
    pos = db.query(PersonalizationOption).filter(PersonalizationOption.personalization_id == group_id).count()
    db.add(PersonalizationOption(personalization_id=group_id, position=pos, **body.model_dump()))
    db.commit()
    out = _group_out(db, g)
    _catalog_changed(notifier)
    return out


@admin_router.patch("/options/{option_id}/availability", response_model=GroupOption)
def set_option_availability(option_id: str, body: AvailabilityIn, db: Session = Depends(get_db),
                            notifier: ChangeNotifier = Depends(get_notifier)):
    o = db.get(PersonalizationOption, option_id)
    if not o:
        raise HTTPException(404, detail="option not found")
    o.available = body.available
    db.commit()
    _catalog_changed(notifier)
    return GroupOption(id=o.id, name=o.name, price=o.price, available=bool(o.available))


@admin_router.delete("/personalizations/{group_id}")
def delete_personalization(group_id: str, db: Session = Depends(get_db),
                           notifier: ChangeNotifier = Depends(get_notifier)):
    g = db.get(Personalization, group_id)
    if not g:
        raise HTTPException(404, detail="personalization not found")
    db.query(ProductPersonalization).filter(ProductPersonalization.personalization_id == group_id).delete()
    db.query(PersonalizationOption).filter(PersonalizationOption.personalization_id == group_id).delete()
    db.delete(g)
    db.commit()
    _catalog_changed(notifier)
    return {"ok": True, "id": group_id}
