from typing import List, Optional
from pydantic import BaseModel, Field


class Person(BaseModel):
    """A participant in the split."""
    id: str
    name: str
    color: str


class BillItem(BaseModel):
    """One priced line on the bill.

    An empty ``assigned_to`` means the item is shared by everyone currently in
    the bill, resolved again on every calculation.
    """
    id: str
    name: str
    price: float = Field(ge=0)
    assigned_to: List[str] = Field(default_factory=list)  # person ids

    @property
    def is_assigned_to_everyone(self) -> bool:
        return not self.assigned_to


class ItemShare(BaseModel):
    """A person's portion of a single item."""
    name: str
    amount: float
    shared: bool
    shared_with: Optional[int] = None  # payer count, only set when shared


class PersonSummary(BaseModel):
    person_id: str
    person_name: str
    items: List[ItemShare]
    subtotal: float
    tax: float
    tip: float
    total: float


class BillSummary(BaseModel):
    """Fully derived split of a bill, never persisted."""
    per_person: List[PersonSummary]
    total_bill: float
    subtotal: float
    tax: float
    tip: float


class ParsedItem(BaseModel):
    """Line item read off a receipt image."""
    name: str = ""
    price: Optional[float] = None


class ParsedReceipt(BaseModel):
    """Structured output of the receipt parser."""
    items: List[ParsedItem]
    subtotal: Optional[float] = None
    tax: Optional[float] = None
    tip: Optional[float] = None
