from decimal import Decimal
from pydantic import BaseModel, Field
from typing import Optional, Dict, List
from .bill_models import BillItem, BillSummary, Person


class CalculateSplitRequest(BaseModel):
    items: List[BillItem] = Field(default_factory=list)
    people: List[Person] = Field(default_factory=list)
    tax: float = Field(default=0.0, ge=0)
    tip_amount: float = Field(default=0.0, ge=0)


class CalculateSplitResponse(BaseModel):
    success: bool
    message: str
    summary: Optional[BillSummary] = None
    rounded_totals: Optional[Dict[str, Decimal]] = None  # person id -> total in cents precision
    error: Optional[str] = None


class TipRequest(BaseModel):
    subtotal: float = Field(ge=0)
    tax: float = Field(default=0.0, ge=0)
    percent: float = Field(ge=0)


class TipResponse(BaseModel):
    tip_amount: float


class NextColorRequest(BaseModel):
    people: List[Person] = Field(default_factory=list)


class NextColorResponse(BaseModel):
    color: str


class ParseReceiptRequest(BaseModel):
    image: Optional[str] = None  # data:image/...;base64,...


class HealthResponse(BaseModel):
    status: str
    message: str
    version: str
