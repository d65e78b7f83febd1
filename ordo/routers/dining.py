# ordo/routers/dining.py
from sqlalchemy.exc import IntegrityError
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional

from ordo.db import get_db
from ordo.models.core import DiningTable, Zone
from ordo.schemas.dining import TableIn, TableOut, TablePatch, TableStatusIn, ZoneIn, ZoneOut

router = APIRouter(prefix="/admin/dining", tags=["dining"])


def _zone_out(z: Zone) -> ZoneOut:
    return ZoneOut(id=z.id, name=z.name, rows=z.rows, cols=z.cols)


def _table_out(t: DiningTable) -> TableOut:
    return TableOut(
        id=t.id, zone_id=t.zone_id, name=t.name,
        row=t.row, col=t.col, width=t.width, height=t.height,
        shape=t.shape, status=t.status,
    )


def _commit_table(db: Session, t: DiningTable):
    try:
        db.commit()
        db.refresh(t)
    except IntegrityError:
        db.rollback()
        raise HTTPException(409, detail="a table with this name already exists in the zone")


def _check_fits(z: Zone, row: int, col: int, width: int, height: int):
    if row + height - 1 > z.rows or col + width - 1 > z.cols:
        raise HTTPException(422, detail="table does not fit inside the zone grid")


# ------------------------------------------------------------------
# zones
# ------------------------------------------------------------------
@router.get("/zones", response_model=List[ZoneOut])
def list_zones(db: Session = Depends(get_db)):
    return [_zone_out(z) for z in db.query(Zone).order_by(Zone.created_at.asc()).all()]


@router.post("/zones", response_model=ZoneOut)
def create_zone(body: ZoneIn, db: Session = Depends(get_db)):
    z = Zone(**body.model_dump())
    db.add(z)
    db.commit()
    db.refresh(z)
    return _zone_out(z)


@router.delete("/zones/{zone_id}")
def delete_zone(zone_id: str, db: Session = Depends(get_db)):
    z = db.get(Zone, zone_id)
    if not z:
        raise HTTPException(404, detail="zone not found")
    db.query(DiningTable).filter(DiningTable.zone_id == zone_id).delete()
    db.delete(z)
    db.commit()
    return {"ok": True, "id": zone_id}


# ------------------------------------------------------------------
# tables
# ------------------------------------------------------------------
@router.get("/tables", response_model=List[TableOut])
def list_tables(zone_id: Optional[str] = None, db: Session = Depends(get_db)):
    q = db.query(DiningTable)
    if zone_id is not None:
        q = q.filter(DiningTable.zone_id == zone_id)
    rows = q.order_by(DiningTable.name.asc()).all()
    return [_table_out(t) for t in rows]


@router.post("/tables", response_model=TableOut)
def create_table(body: TableIn, db: Session = Depends(get_db)):
    z = db.get(Zone, body.zone_id)
    if not z:
        raise HTTPException(404, detail="zone not found")
    _check_fits(z, body.row, body.col, body.width, body.height)
    t = DiningTable(**body.model_dump())
    db.add(t)
    _commit_table(db, t)
    return _table_out(t)


@router.patch("/tables/{table_id}", response_model=TableOut)
def update_table(table_id: str, body: TablePatch, db: Session = Depends(get_db)):
    t = db.get(DiningTable, table_id)
    if not t:
        raise HTTPException(404, detail="table not found")
    for k, v in body.model_dump(exclude_none=True).items():
        setattr(t, k, v)
    _check_fits(db.get(Zone, t.zone_id), t.row, t.col, t.width, t.height)
    _commit_table(db, t)
    return _table_out(t)


@router.post("/tables/{table_id}/status", response_model=TableOut)
def set_table_status(table_id: str, body: TableStatusIn, db: Session = Depends(get_db)):
    t = db.get(DiningTable, table_id)
    if not t:
        raise HTTPException(404, detail="table not found")
    t.status = body.status
    db.commit()
    return _table_out(t)


@router.delete("/tables/{table_id}")
def delete_table(table_id: str, db: Session = Depends(get_db)):
    t = db.get(DiningTable, table_id)
    if not t:
        raise HTTPException(404, detail="table not found")
    db.delete(t)
    db.commit()
    return {"ok": True, "id": table_id}
