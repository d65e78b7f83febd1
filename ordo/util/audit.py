import json
from sqlalchemy.orm import Session
from ordo.models.core import OrderAudit

def audit(db: Session, order_id: str, action: str,
          before: dict | None = None, after: dict | None = None):
    db.add(OrderAudit(
        order_id=order_id,
        action=action,
        before=json.dumps(before) if before else None,
        after=json.dumps(after) if after else None,
    ))
