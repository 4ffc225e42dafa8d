from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from finhub.errors import InvalidAmount, InvalidInput, NotFound
from finhub.models import AccountPayable, AccountReceivable, AccountStatus, Company, CostCenter
from finhub.schemas import CostCenterIn, PayableIn, ReceivableIn
from finhub.services import companies
from finhub.services.companies import UNSET, AccountKind, AccountStatusChange


DUE = datetime(2026, 3, 10, tzinfo=timezone.utc)


def _naive(value: datetime) -> datetime:
    return value.astimezone(timezone.utc).replace(tzinfo=None) if value.tzinfo else value


def _count(session, model) -> int:
    return session.execute(select(func.count()).select_from(model)).scalar_one()


def _receivable(amount: str = "R$ 1.000,00", **kwargs) -> ReceivableIn:
    return ReceivableIn(description="Invoice", amount=amount, due_date=DUE, **kwargs)


def _payable(amount: str = "R$ 250,50", **kwargs) -> PayableIn:
    return PayableIn(description="Supplier", amount=amount, due_date=DUE, **kwargs)


def _create(db, name="Acme", centers=("Sales", "Ops"), receivables=(), payables=()) -> Company:
    return db.run_in_transaction(
        companies.create_company_with_children,
        name,
        [CostCenterIn(name=c) for c in centers],
        list(receivables),
        list(payables),
    )


def test_create_company_attaches_accounts_to_first_cost_center(db):
    company = _create(
        db,
        centers=("Sales", "Ops", "R&D"),
        receivables=[_receivable(), _receivable("R$ 53.549,47"), _receivable(cost_center_id=999)],
        payables=[_payable()],
    )

    assert [c.name for c in company.cost_centers] == ["Sales", "Ops", "R&D"]
    first_center = company.cost_centers[0]
    assert len(company.accounts_receivable) == 3
    assert len(company.accounts_payable) == 1
    assert {r.cost_center_id for r in company.accounts_receivable} == {first_center.id}
    assert company.accounts_payable[0].cost_center_id == first_center.id
    assert [r.amount for r in company.accounts_receivable] == [100000, 5354947, 100000]
    assert company.accounts_payable[0].amount == 25050
    assert len(first_center.accounts_receivable) == 3
    assert company.cost_centers[1].accounts_receivable == []

    with db.session() as session:
        assert _count(session, CostCenter) == 3
        assert _count(session, AccountReceivable) == 3
        assert _count(session, AccountPayable) == 1


def test_create_company_defaults(db):
    company = _create(db, centers=(), receivables=[_receivable()], payables=[_payable(status=AccountStatus.PAID)])

    receivable = company.accounts_receivable[0]
    assert receivable.cost_center_id is None
    assert receivable.status == AccountStatus.PENDING
    assert receivable.received_date is None
    assert receivable.created_at is not None
    # PAID always carries a paid date.
    assert company.accounts_payable[0].paid_date is not None


def test_create_company_rolls_back_on_child_failure(db):
    with pytest.raises(InvalidAmount):
        _create(db, receivables=[_receivable(), _receivable("abc")])

    with db.session() as session:
        assert _count(session, Company) == 0
        assert _count(session, CostCenter) == 0
        assert _count(session, AccountReceivable) == 0


def test_add_receivable_uses_first_cost_center_by_default(db):
    company = _create(db)
    first_id, second_id = (c.id for c in company.cost_centers)

    with db.session() as session:
        default = companies.add_receivable(session, company.id, _receivable())
        explicit = companies.add_receivable(session, company.id, _receivable(cost_center_id=second_id))
        payable = companies.add_payable(session, company.id, _payable())

    assert default.cost_center_id == first_id
    assert explicit.cost_center_id == second_id
    assert payable.cost_center_id == first_id


def test_add_account_errors(db):
    company = _create(db)
    other = _create(db, name="Other")

    with db.session() as session:
        with pytest.raises(NotFound):
            companies.add_receivable(session, 9999, _receivable())
        with pytest.raises(InvalidInput):
            companies.add_payable(session, company.id, _payable(cost_center_id=other.cost_centers[0].id))


def test_add_account_without_cost_centers(db):
    company = _create(db, centers=())
    with db.session() as session:
        payable = companies.add_payable(session, company.id, _payable())
    assert payable.cost_center_id is None


def _update(db, company_id, account_id, kind=AccountKind.RECEIVABLE, **change):
    with db.session() as session:
        return companies.update_account_status(
            session, company_id, account_id, AccountStatusChange(**change), kind=kind
        )


def test_paid_without_date_stamps_now(db):
    company = _create(db, receivables=[_receivable()])
    receivable_id = company.accounts_receivable[0].id

    before = datetime.now(timezone.utc) - timedelta(seconds=5)
    updated = _update(db, company.id, receivable_id, status=AccountStatus.PAID)
    after = datetime.now(timezone.utc) + timedelta(seconds=5)

    assert updated.status == AccountStatus.PAID
    assert _naive(before) <= _naive(updated.received_date) <= _naive(after)


def test_paid_with_explicit_date_is_verbatim(db):
    company = _create(db, payables=[_payable()])
    payable_id = company.accounts_payable[0].id
    paid_on = datetime(2026, 2, 1, 12, 30, tzinfo=timezone.utc)

    updated = _update(db, company.id, payable_id, kind=AccountKind.PAYABLE, status="PAID", settled_at=paid_on)

    assert updated.paid_date == paid_on
    with db.session() as session:
        stored = session.get(AccountPayable, payable_id)
        assert _naive(stored.paid_date) == _naive(paid_on)


def test_pending_with_null_date_clears_it(db):
    company = _create(db, receivables=[_receivable(status=AccountStatus.PAID)])
    receivable_id = company.accounts_receivable[0].id
    assert company.accounts_receivable[0].received_date is not None

    updated = _update(db, company.id, receivable_id, status=AccountStatus.PENDING, settled_at=None)

    assert updated.status == AccountStatus.PENDING
    assert updated.received_date is None


def test_nulling_date_of_paid_account_restamps_it(db):
    received_on = datetime(2026, 1, 5, tzinfo=timezone.utc)
    company = _create(db, receivables=[_receivable(status=AccountStatus.PAID, received_date=received_on)])
    receivable_id = company.accounts_receivable[0].id

    before = datetime.now(timezone.utc) - timedelta(seconds=5)
    updated = _update(db, company.id, receivable_id, settled_at=None)

    assert updated.status == AccountStatus.PAID
    assert updated.received_date is not None
    assert _naive(updated.received_date) >= _naive(before)


def test_omitted_date_is_left_untouched(db):
    received_on = datetime(2026, 1, 5, tzinfo=timezone.utc)
    company = _create(db, receivables=[_receivable(status=AccountStatus.PAID, received_date=received_on)])
    receivable_id = company.accounts_receivable[0].id

    updated = _update(db, company.id, receivable_id, status=AccountStatus.PENDING, settled_at=UNSET)
    assert updated.status == AccountStatus.PENDING
    assert _naive(updated.received_date) == _naive(received_on)

    updated = _update(db, company.id, receivable_id, status=AccountStatus.OVERDUE)
    assert updated.status == AccountStatus.OVERDUE
    assert _naive(updated.received_date) == _naive(received_on)


def test_update_status_of_other_company_account_is_not_found(db):
    company = _create(db, receivables=[_receivable()])
    other = _create(db, name="Other")

    with pytest.raises(NotFound):
        _update(db, other.id, company.accounts_receivable[0].id, status=AccountStatus.PAID)
    with pytest.raises(NotFound):
        _update(db, company.id, company.accounts_receivable[0].id, kind=AccountKind.PAYABLE, status="PAID")


def test_delete_company_cascades(db):
    company = _create(db, receivables=[_receivable(), _receivable()], payables=[_payable()])
    survivor = _create(db, name="Survivor", receivables=[_receivable()])

    with db.session() as session:
        companies.delete_company(session, company.id)

    with db.session() as session:
        assert _count(session, Company) == 1
        assert _count(session, CostCenter) == len(survivor.cost_centers)
        assert _count(session, AccountReceivable) == 1
        assert _count(session, AccountPayable) == 0

    with db.session() as session, pytest.raises(NotFound):
        companies.delete_company(session, company.id)


def test_delete_account(db):
    company = _create(db, receivables=[_receivable()], payables=[_payable()])
    receivable_id = company.accounts_receivable[0].id

    with db.session() as session:
        with pytest.raises(NotFound):
            companies.delete_account(session, company.id, receivable_id, kind=AccountKind.PAYABLE)
        companies.delete_account(session, company.id, receivable_id, kind=AccountKind.RECEIVABLE)

    with db.session() as session:
        assert _count(session, AccountReceivable) == 0
        assert _count(session, AccountPayable) == 1


def test_select_companies_pages_and_filters(db):
    for name in ["Acme Foods", "ACME Steel", "Beta", "acme labs", "Gamma", "Old Acme", "Acme One", "Acme Two", "AcMe 3"]:
        _create(db, name=name, centers=())

    with db.session() as session:
        first = companies.select_companies(session, page=1, limit=5, search="acme")
        second = companies.select_companies(session, page=2, limit=5, search="acme")
        everything = companies.select_companies(session, page=1, limit=100)

    assert first.total == 7
    assert len(first.companies) == 5
    assert first.has_more is True
    assert first.next_page == 2

    assert second.total == 7
    assert len(second.companies) == 2
    assert second.has_more is False
    assert second.next_page is None
    assert all("acme" in c.name.lower() for c in first.companies + second.companies)

    assert everything.total == 9
    assert everything.next_page is None


def test_get_company_not_found(db_session):
    with pytest.raises(NotFound):
        companies.get_company(db_session, 42)
