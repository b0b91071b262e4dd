"""Bill allocation engine.

Pure functions only: every call derives a fresh ``BillSummary`` from its
arguments and never mutates them, so they are safe to call on every change.
"""
import secrets
import string
from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP
from typing import Dict, List, Sequence

from ..models.bill_models import BillItem, BillSummary, ItemShare, Person, PersonSummary

# Display palette, assigned round-robin as people are added
PERSON_COLORS = (
    "blue",
    "violet",
    "emerald",
    "orange",
    "pink",
    "cyan",
    "fuchsia",
    "lime",
    "red",
    "amber",
)

_ID_ALPHABET = string.ascii_lowercase + string.digits
_CENT = Decimal("0.01")


def generate_id() -> str:
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(7))


def get_next_color(existing_people: Sequence[Person]) -> str:
    """Return the palette color following the last person's color."""
    if not existing_people:
        return PERSON_COLORS[0]
    last_color = existing_people[-1].color
    last_index = PERSON_COLORS.index(last_color) if last_color in PERSON_COLORS else -1
    return PERSON_COLORS[(last_index + 1) % len(PERSON_COLORS)]


def resolve_payers(item: BillItem, people: Sequence[Person]) -> List[str]:
    """Effective payer ids for an item; an empty assignment means everyone."""
    if item.assigned_to:
        return list(item.assigned_to)
    return [person.id for person in people]


def calculate_split(
    items: Sequence[BillItem],
    people: Sequence[Person],
    tax: float,
    tip_amount: float,
) -> BillSummary:
    """
    Split a bill between people.

    Each item is divided equally across its payers. Tax and tip are then
    distributed in proportion to each person's share of the subtotal, or
    evenly when the subtotal is zero.

    Args:
        items: Bill line items, in display order
        people: Current participants, in display order
        tax: Bill-wide tax amount
        tip_amount: Bill-wide tip amount

    Returns:
        BillSummary with one PersonSummary per person, in the order of ``people``
    """
    subtotal = sum(item.price for item in items)

    person_subtotals: Dict[str, float] = {person.id: 0.0 for person in people}
    person_items: Dict[str, List[ItemShare]] = {person.id: [] for person in people}

    # 1. Distribute item prices across their payers
    for item in items:
        payers = resolve_payers(item, people)
        if not payers:
            continue
        share_amount = item.price / len(payers)
        is_shared = len(payers) > 1

        for person_id in payers:
            if person_id not in person_subtotals:
                continue
            person_subtotals[person_id] += share_amount
            person_items[person_id].append(
                ItemShare(
                    name=item.name,
                    amount=share_amount,
                    shared=is_shared,
                    shared_with=len(payers) if is_shared else None,
                )
            )

    # 2. Proportional tax and tip
    per_person = []
    for person in people:
        person_subtotal = person_subtotals[person.id]
        if subtotal > 0:
            proportion = person_subtotal / subtotal
        else:
            proportion = 1 / len(people)
        person_tax = tax * proportion
        person_tip = tip_amount * proportion

        per_person.append(
            PersonSummary(
                person_id=person.id,
                person_name=person.name,
                items=person_items[person.id],
                subtotal=person_subtotal,
                tax=person_tax,
                tip=person_tip,
                total=person_subtotal + person_tax + person_tip,
            )
        )

    return BillSummary(
        per_person=per_person,
        total_bill=subtotal + tax + tip_amount,
        subtotal=subtotal,
        tax=tax,
        tip=tip_amount,
    )


def calculate_tip_from_percent(subtotal: float, tax: float, percent: float) -> float:
    # Tip is calculated on the pre-tax subtotal; tax is deliberately unused
    return subtotal * (percent / 100)


def round_totals_to_cents(summary: BillSummary) -> Dict[str, Decimal]:
    """
    Round each person's total to cents so the rounded totals add up exactly.

    Totals are floored to whole cents, then the cents still missing from the
    rounded grand total go one at a time to the people whose totals lost the
    largest fraction (earlier people win ties).

    Returns:
        Mapping of person id to a two-decimal Decimal amount
    """
    if not summary.per_person:
        return {}

    exact_cents = [Decimal(str(person.total)) * 100 for person in summary.per_person]
    floored = [cents.quantize(Decimal("1"), rounding=ROUND_FLOOR) for cents in exact_cents]
    target = sum(exact_cents).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    missing = int(target - sum(floored))

    order = sorted(
        range(len(floored)),
        key=lambda i: exact_cents[i] - floored[i],
        reverse=True,
    )
    for i in order[:missing]:
        floored[i] += 1

    return {
        person.person_id: (cents / 100).quantize(_CENT)
        for person, cents in zip(summary.per_person, floored)
    }
