from __future__ import annotations

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError

from finhub.db import Database, get_database
from finhub.errors import InvalidInput, store_errors
from finhub.schemas import (
    CompanyCreate,
    CompanyOut,
    CompanySummary,
    PayableIn,
    PayableOut,
    PayableStatusUpdate,
    ReceivableIn,
    ReceivableOut,
    ReceivableStatusUpdate,
    serialize,
)
from finhub.services import companies
from finhub.services.companies import UNSET, AccountKind, AccountStatusChange


logger = logging.getLogger(__name__)

router = APIRouter()


def _write_failure(message: str):
    return store_errors(message, error=InvalidInput)


def _status_change(
    payload: Union[ReceivableStatusUpdate, PayableStatusUpdate], settled_field: str
) -> AccountStatusChange:
    # "Not sent" and "sent as null" mean different things for the settled date.
    sent = payload.model_fields_set
    return AccountStatusChange(
        status=payload.status if "status" in sent else UNSET,
        settled_at=getattr(payload, settled_field) if settled_field in sent else UNSET,
    )


@router.get("", response_model=dict)
def list_companies(db: Database = Depends(get_database)) -> dict:
    """
    List all companies with their cost centers, receivables and payables.
    """
    with store_errors("Failed to load companies"), db.session() as session:
        return {"companies": [serialize(CompanyOut, c) for c in companies.list_companies(session)]}


@router.get("/select", response_model=dict)
def select_companies(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    search: Optional[str] = Query(default=None, description="Case-insensitive match on company name"),
    db: Database = Depends(get_database),
) -> dict:
    """
    Paged id/name listing for company pickers.
    """
    with store_errors("Failed to load companies"), db.session() as session:
        result = companies.select_companies(session, page=page, limit=limit, search=search)
        return {
            "companies": [serialize(CompanySummary, c) for c in result.companies],
            "total": result.total,
            "hasMore": result.has_more,
            "nextPage": result.next_page,
        }


@router.get("/{company_id}", response_model=dict)
def get_company(company_id: int, db: Database = Depends(get_database)) -> dict:
    with store_errors("Failed to load company"), db.session() as session:
        return {"company": serialize(CompanyOut, companies.get_company(session, company_id))}


@router.post("", response_model=dict)
def create_company(payload: CompanyCreate, db: Database = Depends(get_database)) -> dict:
    """
    Create a company together with its cost centers and initial accounts.

    All rows are written in one transaction. Initial accounts are attached to
    the first cost center in the payload.
    """
    try:
        company = db.run_in_transaction(
            companies.create_company_with_children,
            payload.name,
            payload.cost_centers,
            payload.accounts_receivable,
            payload.accounts_payable,
        )
    except InvalidInput as exc:
        logger.warning("Company creation rejected: %s", exc.message)
        raise InvalidInput(f"Failed to create company: {exc.message}") from exc
    except SQLAlchemyError as exc:
        logger.warning("Company creation failed: %s", exc)
        raise InvalidInput("Failed to create company") from exc

    return {"message": "Company created", "company": serialize(CompanyOut, company)}


@router.delete("/{company_id}", response_model=dict)
def delete_company(company_id: int, db: Database = Depends(get_database)) -> dict:
    with _write_failure("Failed to delete company"), db.session() as session:
        companies.delete_company(session, company_id)
    return {"message": "Company deleted"}


# Receivables
@router.post("/{company_id}/receivables", response_model=dict)
def add_receivable(company_id: int, payload: ReceivableIn, db: Database = Depends(get_database)) -> dict:
    with _write_failure("Failed to create receivable"), db.session() as session:
        receivable = companies.add_receivable(session, company_id, payload)
        return {"message": "Receivable created", "receivable": serialize(ReceivableOut, receivable)}


@router.patch("/{company_id}/receivables/{receivable_id}", response_model=dict)
def update_receivable(
    company_id: int,
    receivable_id: int,
    payload: ReceivableStatusUpdate,
    db: Database = Depends(get_database),
) -> dict:
    change = _status_change(payload, "received_date")
    with _write_failure("Failed to update receivable"), db.session() as session:
        receivable = companies.update_account_status(
            session, company_id, receivable_id, change, kind=AccountKind.RECEIVABLE
        )
        return {"message": "Receivable updated", "receivable": serialize(ReceivableOut, receivable)}


@router.delete("/{company_id}/receivables/{receivable_id}", response_model=dict)
def delete_receivable(company_id: int, receivable_id: int, db: Database = Depends(get_database)) -> dict:
    with _write_failure("Failed to delete receivable"), db.session() as session:
        companies.delete_account(session, company_id, receivable_id, kind=AccountKind.RECEIVABLE)
    return {"message": "Receivable deleted"}


# Payables
@router.post("/{company_id}/payables", response_model=dict)
def add_payable(company_id: int, payload: PayableIn, db: Database = Depends(get_database)) -> dict:
    with _write_failure("Failed to create payable"), db.session() as session:
        payable = companies.add_payable(session, company_id, payload)
        return {"message": "Payable created", "payable": serialize(PayableOut, payable)}


@router.patch("/{company_id}/payables/{payable_id}", response_model=dict)
def update_payable(
    company_id: int,
    payable_id: int,
    payload: PayableStatusUpdate,
    db: Database = Depends(get_database),
) -> dict:
    change = _status_change(payload, "paid_date")
    with _write_failure("Failed to update payable"), db.session() as session:
        payable = companies.update_account_status(session, company_id, payable_id, change, kind=AccountKind.PAYABLE)
        return {"message": "Payable updated", "payable": serialize(PayableOut, payable)}


@router.delete("/{company_id}/payables/{payable_id}", response_model=dict)
def delete_payable(company_id: int, payable_id: int, db: Database = Depends(get_database)) -> dict:
    with _write_failure("Failed to delete payable"), db.session() as session:
        companies.delete_account(session, company_id, payable_id, kind=AccountKind.PAYABLE)
    return {"message": "Payable deleted"}
