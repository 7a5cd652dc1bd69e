from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class RateBase(BaseModel):
    item_name: str = Field(..., min_length=1, max_length=255)
    unit: str = Field(..., min_length=1, max_length=50)
    rate_value: float = Field(..., ge=0)
    keywords: Optional[str] = None

class RateCreate(RateBase):
    pass

class Rate(RateBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    class Config:
        from_attributes = True

class BoqItem(BaseModel):
    id: int
    description: str
    quantity: float
    unit: str
    rate: Optional[float] = None
    total: Optional[float] = None
    class Config:
        from_attributes = True

class PricedItem(BaseModel):
    item_no: str
    description: str
    quantity: float
    unit: str
    rate: Optional[float] = None
    total: Optional[float] = None
    is_ai_suggestion: bool = False
    source: str  # 'Database' | 'AI Estimate' | 'Manual'
    advisor_status: str = "not_attempted"  # 'not_attempted' | 'suggested' | 'unavailable' | 'failed'

class RowDiagnostic(BaseModel):
    row_number: Optional[int] = None  # None = whole file unreadable
    reason: str

class EstimateResponse(BaseModel):
    items: List[PricedItem] = []
    project_total: float = 0.0
    skipped_rows: List[RowDiagnostic] = []
