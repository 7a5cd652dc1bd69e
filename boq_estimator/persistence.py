"""
BOQ item persistence.

Replaces the stored BOQ with a new batch inside one transaction: delete
every existing row, insert the new items in sheet order, commit. Any
failure rolls the whole thing back so the previous BOQ stays intact.

Only the economic fields are stored. is_ai_suggestion / source live in
the upload response only.
"""

import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models
from .estimator import PricedItem

logger = logging.getLogger(__name__)


class PersistenceError(RuntimeError):
    """Saving the BOQ failed and was rolled back."""


def replace_boq_items(db: Session, items: List[PricedItem]) -> int:
    """Swap the stored BOQ for ``items`` atomically. Returns rows written."""
    try:
        db.query(models.BoqItem).delete(synchronize_session=False)
        for item in items:
            db.add(models.BoqItem(
                description=item.description,
                quantity=item.quantity,
                unit=item.unit,
                rate=item.rate,
                total=item.total,
            ))
            # Flush per row so a bad row fails here, inside the try
            db.flush()
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Saving BOQ items failed, rolled back: %s", e)
        raise PersistenceError(f"Failed to save BOQ items: {e}") from e

    logger.info("Stored %d BOQ items", len(items))
    return len(items)


def list_boq_items(db: Session) -> List[models.BoqItem]:
    return db.query(models.BoqItem).order_by(models.BoqItem.id.asc()).all()


def clear_boq_items(db: Session) -> int:
    deleted = db.query(models.BoqItem).delete(synchronize_session=False)
    db.commit()
    return deleted


def load_catalog(db: Session) -> List[models.Rate]:
    """Rate catalog snapshot, detached so the session's connection goes back to the pool.

    Estimation can wait minutes on the advisor queue; nothing should hold a
    pooled connection through that.
    """
    rates = db.query(models.Rate).order_by(models.Rate.id.asc()).all()
    db.expunge_all()
    db.rollback()
    return rates
