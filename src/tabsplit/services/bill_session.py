"""Caller-owned bill state"""
from typing import List, Optional
from loguru import logger

from ..core.config import settings
from ..models.bill_models import BillItem, BillSummary, ParsedReceipt, Person
from .calculations import (
    calculate_split,
    calculate_tip_from_percent,
    generate_id,
    get_next_color,
    resolve_payers,
)
from .receipt_parser import clean_parsed_receipt


class BillSession:
    """
    Holds the people, items, tax and tip of one bill being split.

    The session owns all mutable state; the allocation engine is called
    afresh from ``summary()`` and keeps nothing between calls.
    """

    def __init__(self):
        self.people: List[Person] = []
        self.items: List[BillItem] = []
        self.tax: float = 0.0
        self.tip_amount: float = 0.0

    @property
    def subtotal(self) -> float:
        return sum(item.price for item in self.items)

    @property
    def can_split(self) -> bool:
        return bool(self.items) and bool(self.people)

    def summary(self) -> BillSummary:
        return calculate_split(self.items, self.people, self.tax, self.tip_amount)

    # People

    def add_person(self, name: str) -> Person:
        name = name.strip()
        if not name:
            raise ValueError("Person name must not be blank")

        person = Person(id=generate_id(), name=name, color=get_next_color(self.people))
        self.people.append(person)
        logger.debug(f"Added person {person.name} ({person.color})")
        return person

    def remove_person(self, person_id: str) -> None:
        """Remove a person and drop them from every item assignment."""
        self._find_person(person_id)
        self.people = [p for p in self.people if p.id != person_id]
        self.items = [
            item.model_copy(update={"assigned_to": [pid for pid in item.assigned_to if pid != person_id]})
            for item in self.items
        ]
        logger.debug(f"Removed person {person_id}")

    # Items

    def add_item(self, name: str, price: float) -> BillItem:
        name = name.strip()
        if not name:
            raise ValueError("Item name must not be blank")
        if price <= 0:
            raise ValueError(f"Item price must be positive, got {price}")

        item = BillItem(id=generate_id(), name=name, price=price)
        self.items.append(item)
        return item

    def update_item(self, item_id: str, **updates) -> BillItem:
        index = self._item_index(item_id)
        unknown = set(updates) - set(BillItem.model_fields)
        if unknown:
            raise ValueError(f"Unknown item field(s): {', '.join(sorted(unknown))}")
        for person_id in updates.get("assigned_to", []):
            self._find_person(person_id)

        updated = BillItem.model_validate({**self.items[index].model_dump(), **updates})
        self.items[index] = updated
        return updated

    def remove_item(self, item_id: str) -> None:
        index = self._item_index(item_id)
        del self.items[index]

    def toggle_assignment(self, item_id: str, person_id: str) -> BillItem:
        """
        Add or remove a person from an item's payers.

        The last remaining payer cannot be removed. When every current person
        ends up assigned, the item goes back to the "everyone" assignment.
        """
        self._find_person(person_id)
        item = self.items[self._item_index(item_id)]
        current = resolve_payers(item, self.people)

        if person_id in current:
            assigned = [pid for pid in current if pid != person_id]
            if not assigned:
                logger.warning(f"Refusing to unassign the last payer from item '{item.name}'")
                return item
        else:
            assigned = current + [person_id]

        if len(assigned) == len(self.people):
            assigned = []

        return self.update_item(item_id, assigned_to=assigned)

    def select_only(self, item_id: str, person_id: str) -> BillItem:
        self._find_person(person_id)
        return self.update_item(item_id, assigned_to=[person_id])

    # Tax & tip

    def set_tax(self, amount: float) -> None:
        if amount < 0:
            raise ValueError(f"Tax must not be negative, got {amount}")
        self.tax = amount

    def set_tip(self, amount: float) -> None:
        if amount < 0:
            raise ValueError(f"Tip must not be negative, got {amount}")
        self.tip_amount = amount

    def set_tip_percent(self, percent: float) -> float:
        self.set_tip(calculate_tip_from_percent(self.subtotal, self.tax, percent))
        return self.tip_amount

    def load_receipt(self, parsed: ParsedReceipt, tip_percent: Optional[float] = None) -> None:
        """
        Replace the items with those read from a receipt.

        The receipt is cleaned first, so unusable items and negative amounts
        are dropped. Parsed items start out assigned to everyone. The tip is reset to
        ``tip_percent`` (default from settings) of the new subtotal.
        """
        if tip_percent is None:
            tip_percent = settings.default_tip_percent
        if tip_percent < 0:
            raise ValueError(f"Tip percent must not be negative, got {tip_percent}")

        parsed = clean_parsed_receipt(parsed)
        items = [
            BillItem(id=generate_id(), name=parsed_item.name, price=parsed_item.price)
            for parsed_item in parsed.items
        ]
        tax = parsed.tax if parsed.tax else self.tax
        subtotal = sum(item.price for item in items)

        # Nothing is replaced until every new value is known to be valid
        self.items = items
        self.tax = tax
        self.tip_amount = calculate_tip_from_percent(subtotal, tax, tip_percent)
        logger.info(f"Loaded {len(self.items)} item(s) from receipt, subtotal {self.subtotal:.2f}")

    def reset(self) -> None:
        self.people = []
        self.items = []
        self.tax = 0.0
        self.tip_amount = 0.0

    def _find_person(self, person_id: str) -> Person:
        for person in self.people:
            if person.id == person_id:
                return person
        raise KeyError(f"Unknown person id: {person_id}")

    def _item_index(self, item_id: str) -> int:
        for index, item in enumerate(self.items):
            if item.id == item_id:
                return index
        raise KeyError(f"Unknown item id: {item_id}")
