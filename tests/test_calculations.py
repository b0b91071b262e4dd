from decimal import Decimal

import pytest

from tabsplit.models.bill_models import BillItem, BillSummary, Person, PersonSummary
from tabsplit.services.calculations import (
    PERSON_COLORS,
    calculate_split,
    calculate_tip_from_percent,
    generate_id,
    get_next_color,
    resolve_payers,
    round_totals_to_cents,
)


def make_people(*names):
    return [Person(id=name.lower(), name=name, color=PERSON_COLORS[i % 10]) for i, name in enumerate(names)]


def make_item(name, price, assigned_to=()):
    return BillItem(id=name.lower().replace(" ", "-"), name=name, price=price, assigned_to=list(assigned_to))


def by_id(summary):
    return {person.person_id: person for person in summary.per_person}


def test_everyone_item_split_with_tax_and_tip():
    people = make_people("Alice", "Bob")
    summary = calculate_split([make_item("Pizza", 30.00)], people, 3.00, 6.00)

    for person in summary.per_person:
        assert person.subtotal == pytest.approx(15.00)
        assert person.tax == pytest.approx(1.50)
        assert person.tip == pytest.approx(3.00)
        assert person.total == pytest.approx(19.50)
        assert person.items[0].shared is True
        assert person.items[0].shared_with == 2
    assert summary.total_bill == pytest.approx(39.00)


def test_single_payer_items_are_not_shared():
    people = make_people("Alice", "Bob")
    items = [make_item("Burger", 10.00, ["alice"]), make_item("Salad", 10.00, ["bob"])]
    summary = by_id(calculate_split(items, people, 0, 0))

    assert summary["alice"].total == pytest.approx(10.00)
    assert summary["bob"].total == pytest.approx(10.00)
    assert [share.name for share in summary["alice"].items] == ["Burger"]
    assert summary["alice"].items[0].shared is False
    assert summary["alice"].items[0].shared_with is None
    assert summary["bob"].items[0].shared is False


def test_explicit_three_way_share():
    people = make_people("Alice", "Bob", "Carol")
    items = [make_item("Shared Appetizer", 9.00, ["alice", "bob", "carol"])]
    summary = calculate_split(items, people, 0, 0)

    for person in summary.per_person:
        assert person.subtotal == pytest.approx(3.00)
        assert person.items[0].shared is True
        assert person.items[0].shared_with == 3


def test_no_items_splits_tax_and_tip_evenly():
    people = make_people("Alice", "Bob")
    summary = calculate_split([], people, 10.00, 5.00)

    for person in summary.per_person:
        assert person.subtotal == 0
        assert person.tax == pytest.approx(5.00)
        assert person.tip == pytest.approx(2.50)
        assert person.total == pytest.approx(7.50)
    assert summary.total_bill == pytest.approx(15.00)


def test_no_people_gives_empty_breakdown():
    summary = calculate_split([make_item("Pizza", 12.00)], [], 1.00, 2.00)

    assert summary.per_person == []
    assert summary.subtotal == pytest.approx(12.00)
    assert summary.total_bill == pytest.approx(15.00)


def test_nothing_at_all():
    summary = calculate_split([], [], 0, 0)

    assert summary.per_person == []
    assert summary.total_bill == 0


def test_zero_priced_items_fall_back_to_even_tax_and_tip():
    people = make_people("Alice", "Bob", "Carol")
    items = [make_item("Water", 0.0, ["alice"])]
    summary = calculate_split(items, people, 3.00, 6.00)

    for person in summary.per_person:
        assert person.tax == pytest.approx(1.00)
        assert person.tip == pytest.approx(2.00)


def test_tax_and_tip_follow_subtotal_proportion():
    people = make_people("Alice", "Bob")
    items = [
        make_item("Steak", 30.00, ["alice"]),
        make_item("Soup", 10.00, ["bob"]),
        make_item("Wine", 20.00),
    ]
    summary = by_id(calculate_split(items, people, 6.00, 12.00))

    # Alice: 30 + 10 = 40 of 60, Bob: 10 + 10 = 20 of 60
    assert summary["alice"].tax == pytest.approx(6.00 * 40 / 60)
    assert summary["alice"].tip == pytest.approx(12.00 * 40 / 60)
    assert summary["bob"].tax == pytest.approx(6.00 * 20 / 60)
    assert summary["bob"].tip == pytest.approx(12.00 * 20 / 60)


def test_totals_are_conserved():
    people = make_people("Alice", "Bob", "Carol", "Dan")
    items = [
        make_item("Nachos", 11.37, ["alice", "bob", "carol"]),
        make_item("Tacos", 7.99),
        make_item("Beer", 6.50, ["dan"]),
        make_item("Churros", 4.33, ["bob", "dan"]),
    ]
    summary = calculate_split(items, people, 2.71, 5.93)

    assert sum(p.subtotal for p in summary.per_person) == pytest.approx(summary.subtotal, abs=1e-9)
    assert sum(p.tax for p in summary.per_person) == pytest.approx(2.71, abs=1e-9)
    assert sum(p.tip for p in summary.per_person) == pytest.approx(5.93, abs=1e-9)
    assert sum(p.total for p in summary.per_person) == pytest.approx(summary.total_bill, abs=1e-9)


def test_everyone_assignment_follows_current_people():
    item = make_item("Fries", 12.00)

    two = calculate_split([item], make_people("Alice", "Bob"), 0, 0)
    three = calculate_split([item], make_people("Alice", "Bob", "Carol"), 0, 0)

    assert [p.subtotal for p in two.per_person] == pytest.approx([6.00, 6.00])
    assert [p.subtotal for p in three.per_person] == pytest.approx([4.00, 4.00, 4.00])
    assert item.assigned_to == []


def test_unknown_payer_ids_are_skipped():
    people = make_people("Alice")
    items = [make_item("Ghost Drink", 8.00, ["alice", "ghost"])]
    summary = calculate_split(items, people, 0, 0)

    alice = summary.per_person[0]
    assert alice.subtotal == pytest.approx(4.00)
    assert alice.items[0].shared_with == 2


def test_breakdown_follows_item_order_and_inputs_are_untouched():
    people = make_people("Alice", "Bob")
    items = [make_item("A", 1.00), make_item("B", 2.00, ["bob"]), make_item("C", 3.00)]
    snapshot = [item.model_dump() for item in items]

    summary = by_id(calculate_split(items, people, 0, 0))

    assert [share.name for share in summary["alice"].items] == ["A", "C"]
    assert [share.name for share in summary["bob"].items] == ["A", "B", "C"]
    assert [item.model_dump() for item in items] == snapshot


def test_per_person_follows_people_order():
    people = make_people("Zed", "Amy", "Kim")
    summary = calculate_split([make_item("Cake", 9.00)], people, 0, 0)

    assert [p.person_name for p in summary.per_person] == ["Zed", "Amy", "Kim"]


def test_resolve_payers():
    people = make_people("Alice", "Bob")

    assert resolve_payers(make_item("X", 1.0), people) == ["alice", "bob"]
    assert resolve_payers(make_item("Y", 1.0, ["bob"]), people) == ["bob"]
    assert resolve_payers(make_item("Z", 1.0), []) == []


@pytest.mark.parametrize("tax", [0, 8.25, 1000])
def test_tip_ignores_tax(tax):
    assert calculate_tip_from_percent(100, tax, 20) == pytest.approx(20)


def test_tip_percentages():
    assert calculate_tip_from_percent(45.00, 0, 18) == pytest.approx(8.10)
    assert calculate_tip_from_percent(0, 5, 20) == 0


def test_first_color_for_empty_group():
    assert get_next_color([]) == "blue"


def test_next_color_follows_last_person():
    people = make_people("Alice", "Bob")
    assert get_next_color(people) == "emerald"


def test_next_color_wraps_around():
    last = Person(id="p", name="P", color="amber")
    assert get_next_color([last]) == "blue"


def test_next_color_depends_only_on_last_person():
    people = [
        Person(id="a", name="A", color="blue"),
        Person(id="b", name="B", color="pink"),
    ]
    assert get_next_color(people) == "cyan"
    assert get_next_color(people[:1]) == "violet"


def test_unknown_color_restarts_palette():
    assert get_next_color([Person(id="a", name="A", color="mauve")]) == "blue"


def test_generate_id_shape():
    ids = {generate_id() for _ in range(50)}
    assert len(ids) == 50
    assert all(len(i) == 7 and i.isalnum() for i in ids)


def test_round_totals_reconcile_to_total_bill():
    people = make_people("Alice", "Bob", "Carol")
    summary = calculate_split([make_item("Pie", 10.00)], people, 0, 0)

    rounded = round_totals_to_cents(summary)

    assert rounded == {
        "alice": Decimal("3.34"),
        "bob": Decimal("3.33"),
        "carol": Decimal("3.33"),
    }
    assert sum(rounded.values()) == Decimal("10.00")


def test_round_totals_give_extra_cent_to_largest_fraction():
    def person(person_id, total):
        return PersonSummary(
            person_id=person_id, person_name=person_id, items=[],
            subtotal=total, tax=0, tip=0, total=total,
        )

    summary = BillSummary(
        per_person=[person("alice", 1.004), person("bob", 2.006), person("carol", 3.0)],
        total_bill=6.01,
        subtotal=6.01,
        tax=0,
        tip=0,
    )

    rounded = round_totals_to_cents(summary)

    assert rounded == {
        "alice": Decimal("1.00"),
        "bob": Decimal("2.01"),
        "carol": Decimal("3.00"),
    }


def test_round_totals_keep_exact_amounts():
    summary = calculate_split([make_item("Pizza", 30.00)], make_people("Alice", "Bob"), 3.00, 6.00)

    assert round_totals_to_cents(summary) == {"alice": Decimal("19.50"), "bob": Decimal("19.50")}


def test_round_totals_without_people():
    assert round_totals_to_cents(calculate_split([], [], 5, 5)) == {}
