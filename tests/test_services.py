from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from expense_tracker.errors import NotFoundError, ValidationError
from expense_tracker.models import Expense, ExpenseCategory
from expense_tracker.paging import PageRequest
from expense_tracker.services import ExpenseService, month_window


def test_month_window_handles_month_lengths():
    assert month_window(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_window(2023, 2) == (date(2023, 2, 1), date(2023, 2, 28))
    assert month_window(2024, 4) == (date(2024, 4, 1), date(2024, 4, 30))
    assert month_window(2024, 12) == (date(2024, 12, 1), date(2024, 12, 31))


def test_month_window_rejects_bad_month():
    with pytest.raises(ValueError):
        month_window(2024, 13)


def test_save_then_find_by_id(service):
    saved = service.save(
        Expense(name="Coffee", expense_type="Food", amount=Decimal(5), date=date(2024, 1, 1))
    )
    assert saved.id is not None
    assert saved.creation_date is not None

    found = service.find_by_id(saved.id)
    assert (found.name, found.expense_type, found.amount, found.date) == (
        "Coffee",
        "Food",
        Decimal(5),
        date(2024, 1, 1),
    )


def test_ids_increase(make_expense):
    ids = [make_expense(name=f"e{i}").id for i in range(3)]
    assert ids == sorted(ids)
    assert len(set(ids)) == 3


def test_creation_date_comes_from_the_database(make_expense):
    saved = make_expense()
    assert saved.creation_date is not None
    assert saved.creation_date.year > 1999

    with pytest.raises(ValidationError) as info:
        saved.creation_date = datetime(1999, 1, 1)
    assert info.value.field == "creation_date"


def test_save_with_existing_id_replaces_record(service, make_expense):
    original = make_expense(name="Coffee", amount=5)
    created = original.creation_date

    replaced = service.save(
        Expense(id=original.id, name="Tea", expense_type="Drinks", amount=Decimal(7), date=date(2024, 1, 2))
    )

    assert replaced.id == original.id
    assert (replaced.name, replaced.expense_type, replaced.amount) == ("Tea", "Drinks", Decimal(7))
    assert replaced.creation_date == created
    assert len(service.find_all()) == 1


def test_find_by_unknown_id(service):
    with pytest.raises(NotFoundError) as info:
        service.find_by_id(404)
    assert info.value.entity_id == 404


def test_delete_by_id(service, make_expense):
    e = make_expense()
    service.delete_by_id(e.id)
    with pytest.raises(NotFoundError):
        service.find_by_id(e.id)


def test_delete_unknown_id_is_an_error(service):
    with pytest.raises(NotFoundError):
        service.delete_by_id(1)


def test_total_amount():
    amounts = ["10.00", "20.00", "30.00"]
    expenses = [
        Expense(name="x", expense_type="t", amount=Decimal(a), date=date(2024, 1, 1)) for a in amounts
    ]
    assert ExpenseService.get_total_amount(expenses) == Decimal("60.00")
    assert ExpenseService.get_total_amount([]) == 0


def test_total_amount_is_exact_for_large_values():
    big = Decimal("999999999999999")
    expenses = [Expense(name="x", expense_type="t", amount=big, date=date(2024, 1, 1)) for _ in range(3)]
    assert ExpenseService.get_total_amount(expenses) == Decimal("2999999999999997")


def test_find_all_paged_is_newest_first_whatever_the_sort(service, make_expense, t0):
    # id 顺序和创建时间顺序故意相反
    newest = make_expense(name="newest", created=t0 + timedelta(hours=2))
    oldest = make_expense(name="oldest", created=t0)
    middle = make_expense(name="middle", created=t0 + timedelta(hours=1))

    for sort in (None, "amount", "-id", "creation_date"):
        page = service.find_all_paged(PageRequest(page=0, size=10, sort=sort))
        assert [e.id for e in page] == [newest.id, middle.id, oldest.id]


def test_find_all_paged_metadata(service, make_expense):
    for i in range(5):
        make_expense(name=f"e{i}")
    page = service.find_all_paged(PageRequest(page=1, size=2))
    assert len(page) == 2
    assert (page.page, page.size, page.total, page.total_pages) == (1, 2, 5, 3)
    assert page.has_next
    # 同一秒创建的记录按 id 倒序
    assert [e.name for e in page] == ["e2", "e1"]


def test_year_month_leap_february(service, make_expense):
    make_expense(name="jan", on=date(2024, 1, 31))
    first = make_expense(name="first", on=date(2024, 2, 1))
    last = make_expense(name="last", on=date(2024, 2, 29))
    make_expense(name="mar", on=date(2024, 3, 1))

    page = service.get_expenses_by_year_month(2024, 2, PageRequest())
    assert {e.id for e in page} == {first.id, last.id}
    assert page.total == 2


def test_year_month_and_type_is_intersection(service, make_expense):
    a = make_expense(name="A", expense_type="Food", on=date(2024, 2, 10))
    make_expense(name="B", expense_type="Rent", on=date(2024, 2, 15))
    make_expense(name="C", expense_type="Food", on=date(2024, 3, 1))

    page = service.get_expenses_by_year_month_and_type(2024, 2, "Food", PageRequest())
    assert [e.id for e in page] == [a.id]


def test_by_type_matches_exactly(service, make_expense):
    make_expense(name="A", expense_type="Food", on=date(2023, 5, 1))
    make_expense(name="B", expense_type="food")
    c = make_expense(name="C", expense_type="Food", on=date(2024, 6, 1))

    page = service.get_expenses_by_type("Food", PageRequest())
    assert [e.name for e in page] == ["C", "A"]
    assert page.items[0].id == c.id


def test_convert_to_csv(make_expense, t0):
    e = make_expense(name="Coffee", expense_type="Food", amount=5, on=date(2024, 1, 1), created=t0)
    lines = ExpenseService.convert_to_csv([e]).splitlines()
    assert lines == [
        "ID,Name,Type,Amount,Date,CreationTimestamp",
        f"{e.id},Coffee,Food,5,2024-01-01,{t0}",
    ]


def test_convert_to_csv_does_not_quote_commas():
    e = Expense(id=2, name="Bread, milk", expense_type="Food", amount=3, date=date(2024, 1, 1))
    text = ExpenseService.convert_to_csv([e], header="a,b,c,d,e,f")
    assert text == "a,b,c,d,e,f\n2,Bread, milk,Food,3,2024-01-01,\n"


def test_convert_empty_collection():
    assert ExpenseService.convert_to_csv([]) == "ID,Name,Type,Amount,Date,CreationTimestamp\n"


def test_categories(service):
    food = service.save_category(ExpenseCategory(expense_category="Food"))
    service.save_category(ExpenseCategory(expense_category="bills"))

    assert [c.expense_category for c in service.find_all_categories()] == ["bills", "Food"]
    assert service.find_category_by_id(food.id).expense_category == "Food"

    service.delete_category_by_id(food.id)
    with pytest.raises(NotFoundError):
        service.find_category_by_id(food.id)
    with pytest.raises(NotFoundError):
        service.delete_category_by_id(food.id)


def test_duplicate_category_label_propagates(service):
    service.save_category(ExpenseCategory(expense_category="Food"))
    with pytest.raises(IntegrityError):
        service.save_category(ExpenseCategory(expense_category="Food"))
    # session 已回滚，还能继续用
    assert len(service.find_all_categories()) == 1
