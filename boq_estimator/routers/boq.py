"""
BOQ API.

Rates (catalog):
    GET    /api/boq/rates            - list, by item name
    POST   /api/boq/rates            - create
    PUT    /api/boq/rates/{id}       - update
    DELETE /api/boq/rates/{id}       - delete
    GET    /api/boq/rates/seed       - insert starter catalog, skips existing

Estimation:
    POST   /api/boq/upload-boq       - price an uploaded .xlsx and store it
    GET    /api/boq/items            - stored items from the last upload
    DELETE /api/boq/items/clear      - empty the store
    GET    /api/boq/download-boq     - stored items as .xlsx
"""

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile
from sqlalchemy.orm import Session

from .. import models, schemas
from ..boq_export import build_boq_workbook
from ..boq_parser import parse_boq_workbook
from ..config import settings
from ..database import get_db
from ..dependencies import get_estimator
from ..estimator import BoqEstimator
from ..persistence import (
    PersistenceError, clear_boq_items, list_boq_items, load_catalog, replace_boq_items,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/boq", tags=["boq"])

EXCEL_EXTENSIONS = (".xlsx", ".xlsm")
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# Starter catalog - typical site rates, edit via the API as prices move
DEFAULT_RATES = [
    {"item_name": "Concrete Mix (Grade 30)", "unit": "m³", "rate_value": 85.00,
     "keywords": "concrete rcc pcc slab footing column beam grade m30"},
    {"item_name": "Steel Reinforcement", "unit": "kg", "rate_value": 1.25,
     "keywords": "steel rebar reinforcement tmt bars bending binding"},
    {"item_name": "Brickwork", "unit": "m²", "rate_value": 45.50,
     "keywords": "brick wall masonry partition"},
    {"item_name": "Cement", "unit": "bag", "rate_value": 8.75,
     "keywords": "cement opc ppc bag"},
    {"item_name": "Sand (Fine)", "unit": "m³", "rate_value": 35.00,
     "keywords": "sand fine aggregate filling"},
    {"item_name": "Skilled Labor (Mason)", "unit": "hr", "rate_value": 25.00,
     "keywords": "mason skilled labour labor"},
    {"item_name": "General Labor", "unit": "hr", "rate_value": 15.00,
     "keywords": "labour labor helper unskilled"},
    {"item_name": "Paint (Interior)", "unit": "L", "rate_value": 12.50,
     "keywords": "paint interior emulsion coat wall finish"},
]


def seed_default_rates(db: Session) -> int:
    """Insert DEFAULT_RATES whose item_name isn't in the catalog yet."""
    seeded = 0
    for data in DEFAULT_RATES:
        existing = db.query(models.Rate).filter(
            models.Rate.item_name == data["item_name"]
        ).first()
        if not existing:
            db.add(models.Rate(**data))
            seeded += 1
    db.commit()
    return seeded


def _get_rate_or_404(rate_id: int, db: Session) -> models.Rate:
    rate = db.query(models.Rate).filter(models.Rate.id == rate_id).first()
    if not rate:
        raise HTTPException(status_code=404, detail="Rate not found.")
    return rate


# --- Rate catalog ---

@router.get("/rates/seed")
def seed_rates(db: Session = Depends(get_db)):
    """Seed the starter catalog. Safe to run multiple times - skips existing."""
    return {"ok": True, "seeded": seed_default_rates(db)}


@router.get("/rates", response_model=List[schemas.Rate])
def list_rates(db: Session = Depends(get_db)):
    return db.query(models.Rate).order_by(models.Rate.item_name.asc()).all()


@router.post("/rates", response_model=schemas.Rate, status_code=201)
def create_rate(rate: schemas.RateCreate, db: Session = Depends(get_db)):
    db_rate = models.Rate(**rate.model_dump())
    db.add(db_rate)
    db.commit()
    db.refresh(db_rate)
    return db_rate


@router.put("/rates/{rate_id}", response_model=schemas.Rate)
def update_rate(rate_id: int, update: schemas.RateCreate, db: Session = Depends(get_db)):
    db_rate = _get_rate_or_404(rate_id, db)
    for field, value in update.model_dump().items():
        setattr(db_rate, field, value)
    db.commit()
    db.refresh(db_rate)
    return db_rate


@router.delete("/rates/{rate_id}", status_code=204)
def delete_rate(rate_id: int, db: Session = Depends(get_db)):
    db_rate = _get_rate_or_404(rate_id, db)
    db.delete(db_rate)
    db.commit()
    return Response(status_code=204)


# --- Estimation ---

@router.post("/upload-boq", response_model=schemas.EstimateResponse)
def upload_boq(
    boq_file: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    estimator: BoqEstimator = Depends(get_estimator),
):
    """
    Price an uploaded BOQ workbook and replace the stored BOQ with it.

    Catalog matches are priced immediately; misses wait in the shared AI
    queue, so large uploads with many unknown items take a while.
    Returns every priced item (with source flags), the project total and
    the rows that were skipped.
    """
    if boq_file is None or not boq_file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded. Please upload a .xlsx file.")
    if not boq_file.filename.lower().endswith(EXCEL_EXTENSIONS):
        raise HTTPException(status_code=400, detail="File must be an Excel workbook (.xlsx)")

    file_bytes = boq_file.file.read()
    file_size_mb = len(file_bytes) / (1024 * 1024)
    if file_size_mb > settings.MAX_UPLOAD_MB:
        raise HTTPException(
            status_code=413,
            detail=f"File too large: {file_size_mb:.1f} MB (max {settings.MAX_UPLOAD_MB} MB)",
        )

    parsed = parse_boq_workbook(file_bytes)
    catalog = load_catalog(db)
    result = estimator.estimate(parsed.rows, catalog, skipped_rows=parsed.diagnostics)

    try:
        replace_boq_items(db, result.items)
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=f"An error occurred during BOQ processing: {e}")

    return result.as_dict()


@router.get("/items", response_model=List[schemas.BoqItem])
def list_items(db: Session = Depends(get_db)):
    return list_boq_items(db)


@router.delete("/items/clear", status_code=204)
def clear_items(db: Session = Depends(get_db)):
    clear_boq_items(db)
    return Response(status_code=204)


@router.get("/download-boq")
def download_boq(db: Session = Depends(get_db)):
    items = list_boq_items(db)
    if not items:
        raise HTTPException(status_code=404, detail="No processed BOQ items available to download.")

    content = build_boq_workbook(items, currency_symbol=settings.CURRENCY_SYMBOL)
    filename = f"Processed_BOQ_{date.today().isoformat()}.xlsx"
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
