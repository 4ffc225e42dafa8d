"""
Company aggregate: a company with its cost centers and accounts.

The only multi-row write is ``create_company_with_children``; run it through
``Database.run_in_transaction`` so the whole tree commits or rolls back together.
Every other write here is a single statement issued inside the caller's session.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Sequence, Type, Union

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from finhub.errors import InvalidInput, NotFound
from finhub.models import (
    AccountPayable,
    AccountReceivable,
    AccountStatus,
    Company,
    CostCenter,
    utcnow,
)
from finhub.schemas import AccountIn, CostCenterIn, PayableIn, ReceivableIn
from finhub.services.money import parse_amount


logger = logging.getLogger(__name__)


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


# Marks a field the caller did not send at all, as opposed to an explicit null.
UNSET: Any = _Unset()


class AccountKind(str, enum.Enum):
    RECEIVABLE = "receivable"
    PAYABLE = "payable"

    @property
    def model(self) -> Type[Union[AccountReceivable, AccountPayable]]:
        return AccountReceivable if self is AccountKind.RECEIVABLE else AccountPayable

    @property
    def settled_field(self) -> str:
        """Column holding the date money actually moved."""
        return "received_date" if self is AccountKind.RECEIVABLE else "paid_date"

    @property
    def label(self) -> str:
        return "Receivable" if self is AccountKind.RECEIVABLE else "Payable"


@dataclass
class AccountStatusChange:
    status: Any = UNSET
    settled_at: Any = UNSET


@dataclass
class CompanyPage:
    companies: list[Company] = field(default_factory=list)
    total: int = 0
    has_more: bool = False
    next_page: Optional[int] = None


def _company_tree_options() -> list:
    return [
        selectinload(Company.cost_centers).selectinload(CostCenter.accounts_receivable),
        selectinload(Company.cost_centers).selectinload(CostCenter.accounts_payable),
        selectinload(Company.accounts_receivable),
        selectinload(Company.accounts_payable),
    ]


def _build_account(
    kind: AccountKind,
    company_id: int,
    cost_center_id: Optional[int],
    fields: AccountIn,
) -> Union[AccountReceivable, AccountPayable]:
    settled_at = getattr(fields, kind.settled_field, None)
    if fields.status == AccountStatus.PAID and settled_at is None:
        settled_at = utcnow()

    account = kind.model(
        description=fields.description,
        amount=parse_amount(fields.amount),
        due_date=fields.due_date,
        status=fields.status,
        company_id=company_id,
        cost_center_id=cost_center_id,
        created_at=fields.created_at or utcnow(),
    )
    setattr(account, kind.settled_field, settled_at)
    return account


def get_company(session: Session, company_id: int) -> Company:
    company = session.execute(
        select(Company)
        .where(Company.id == company_id)
        .options(*_company_tree_options())
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if company is None:
        raise NotFound("Company not found")
    return company


def list_companies(session: Session) -> Sequence[Company]:
    return session.execute(
        select(Company).options(*_company_tree_options()).order_by(Company.id)
    ).scalars().all()


def select_companies(session: Session, page: int = 1, limit: int = 10, search: Optional[str] = None) -> CompanyPage:
    """Lightweight company lookup for pickers: name filter plus page/limit paging."""
    page = max(page, 1)
    skip = (page - 1) * limit

    stmt = select(Company)
    count_stmt = select(func.count()).select_from(Company)
    if search and search.strip():
        condition = Company.name.icontains(search.strip(), autoescape=True)
        stmt = stmt.where(condition)
        count_stmt = count_stmt.where(condition)

    total = session.execute(count_stmt).scalar_one()
    companies = list(
        session.execute(stmt.order_by(Company.name, Company.id).offset(skip).limit(limit)).scalars()
    )
    has_more = skip + len(companies) < total
    return CompanyPage(
        companies=companies,
        total=total,
        has_more=has_more,
        next_page=page + 1 if has_more else None,
    )


def create_company_with_children(
    session: Session,
    name: str,
    cost_centers: Iterable[CostCenterIn] = (),
    receivables: Iterable[ReceivableIn] = (),
    payables: Iterable[PayableIn] = (),
) -> Company:
    """
    Insert a company, its cost centers and its initial accounts.

    Every initial receivable and payable is attached to the first cost center
    created here (or to none when no cost center was given), whatever
    ``cost_center_id`` the caller put on the account.
    """
    company = Company(name=name.strip())
    session.add(company)
    session.flush()

    created_centers = []
    for item in cost_centers:
        center = CostCenter(name=item.name.strip(), description=item.description, company_id=company.id)
        session.add(center)
        created_centers.append(center)
    session.flush()

    default_center_id = created_centers[0].id if created_centers else None

    receivable_count = 0
    for item in receivables:
        session.add(_build_account(AccountKind.RECEIVABLE, company.id, default_center_id, item))
        receivable_count += 1

    payable_count = 0
    for item in payables:
        session.add(_build_account(AccountKind.PAYABLE, company.id, default_center_id, item))
        payable_count += 1

    session.flush()
    logger.info(
        "Created company %s with %d cost centers, %d receivables, %d payables",
        company.id,
        len(created_centers),
        receivable_count,
        payable_count,
    )
    return get_company(session, company.id)


def _resolve_cost_center(session: Session, company_id: int, cost_center_id: Optional[int]) -> Optional[int]:
    if cost_center_id is not None:
        center = session.get(CostCenter, cost_center_id)
        if center is None or center.company_id != company_id:
            raise InvalidInput(f"Cost center {cost_center_id} does not belong to company {company_id}")
        return center.id

    return session.execute(
        select(CostCenter.id).where(CostCenter.company_id == company_id).order_by(CostCenter.id).limit(1)
    ).scalar_one_or_none()


def add_account(
    session: Session,
    kind: AccountKind,
    company_id: int,
    fields: AccountIn,
) -> Union[AccountReceivable, AccountPayable]:
    # Existence check and insert are separate statements; a concurrent company
    # delete in between surfaces as a foreign key failure on flush.
    if session.get(Company, company_id) is None:
        raise NotFound("Company not found")

    cost_center_id = _resolve_cost_center(session, company_id, fields.cost_center_id)
    account = _build_account(kind, company_id, cost_center_id, fields)
    session.add(account)
    session.flush()
    return account


def add_receivable(session: Session, company_id: int, fields: ReceivableIn) -> AccountReceivable:
    return add_account(session, AccountKind.RECEIVABLE, company_id, fields)


def add_payable(session: Session, company_id: int, fields: PayableIn) -> AccountPayable:
    return add_account(session, AccountKind.PAYABLE, company_id, fields)


def _get_account(
    session: Session, kind: AccountKind, company_id: int, account_id: int
) -> Union[AccountReceivable, AccountPayable]:
    model = kind.model
    account = session.execute(
        select(model).where(model.id == account_id, model.company_id == company_id)
    ).scalar_one_or_none()
    if account is None:
        raise NotFound(f"{kind.label} not found")
    return account


def update_account_status(
    session: Session,
    company_id: int,
    account_id: int,
    change: AccountStatusChange,
    kind: AccountKind,
) -> Union[AccountReceivable, AccountPayable]:
    """
    Apply a status/settled-date change to one account.

    - an explicitly sent date (value or null) is stored as is;
    - PAID without a date stamps the current time, and an account left PAID
      with no date (e.g. its date was nulled) is stamped too;
    - a date that was not sent at all is left untouched.
    """
    account = _get_account(session, kind, company_id, account_id)

    if change.status is not UNSET and change.status is not None:
        account.status = AccountStatus(change.status)

    if change.settled_at is not UNSET:
        setattr(account, kind.settled_field, change.settled_at)
    elif change.status == AccountStatus.PAID:
        setattr(account, kind.settled_field, utcnow())

    # PAID always carries a settled date, whichever field the caller changed.
    if account.status == AccountStatus.PAID and getattr(account, kind.settled_field) is None:
        setattr(account, kind.settled_field, utcnow())

    session.flush()
    logger.info("%s %s of company %s is now %s", kind.label, account.id, company_id, account.status.value)
    return account


def delete_account(session: Session, company_id: int, account_id: int, kind: AccountKind) -> None:
    account = _get_account(session, kind, company_id, account_id)
    session.delete(account)
    session.flush()


def delete_company(session: Session, company_id: int) -> None:
    company = session.get(Company, company_id)
    if company is None:
        raise NotFound("Company not found")
    session.delete(company)
    session.flush()
    logger.info("Deleted company %s and its children", company_id)
