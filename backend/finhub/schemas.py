from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional, Type

from pydantic import BaseModel, Field, computed_field
from pydantic.alias_generators import to_camel

from finhub.models import AccountStatus
from finhub.services.money import format_amount


class CamelModel(BaseModel):
    """JSON uses camelCase; snake_case names are still accepted on input."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


def serialize(schema: Type[BaseModel], obj: Any) -> dict:
    return schema.model_validate(obj).model_dump(mode="json", by_alias=True)


# Users
class PostOut(CamelModel):
    id: int
    title: str
    content: Optional[str] = None
    published: bool
    author_id: int


class UserOut(CamelModel):
    id: int
    email: str
    name: Optional[str] = None
    posts: List[PostOut] = []


class UserCreate(CamelModel):
    email: str = Field(min_length=3)
    name: Optional[str] = None


class UserUpdate(CamelModel):
    email: Optional[str] = None
    name: Optional[str] = None


# Companies
class CostCenterIn(CamelModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None


class AccountIn(CamelModel):
    description: str
    amount: str  # display string, e.g. "R$ 1.234,56"
    due_date: datetime
    status: AccountStatus = AccountStatus.PENDING
    created_at: Optional[datetime] = None
    cost_center_id: Optional[int] = None


class ReceivableIn(AccountIn):
    received_date: Optional[datetime] = None


class PayableIn(AccountIn):
    paid_date: Optional[datetime] = None


class CompanyCreate(CamelModel):
    name: str = Field(min_length=1)
    cost_centers: List[CostCenterIn] = []
    accounts_receivable: List[ReceivableIn] = []
    accounts_payable: List[PayableIn] = []


class ReceivableStatusUpdate(CamelModel):
    status: Optional[AccountStatus] = None
    received_date: Optional[datetime] = None


class PayableStatusUpdate(CamelModel):
    status: Optional[AccountStatus] = None
    paid_date: Optional[datetime] = None


class AccountOut(CamelModel):
    id: int
    description: str
    amount: int
    due_date: datetime
    status: AccountStatus
    company_id: int
    cost_center_id: Optional[int] = None
    created_at: datetime

    @computed_field(alias="formattedAmount")  # type: ignore[misc]
    @property
    def formatted_amount(self) -> str:
        return format_amount(self.amount)


class ReceivableOut(AccountOut):
    received_date: Optional[datetime] = None


class PayableOut(AccountOut):
    paid_date: Optional[datetime] = None


class CostCenterOut(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    company_id: int
    accounts_receivable: List[ReceivableOut] = []
    accounts_payable: List[PayableOut] = []


class CompanyOut(CamelModel):
    id: int
    name: str
    cost_centers: List[CostCenterOut] = []
    accounts_receivable: List[ReceivableOut] = []
    accounts_payable: List[PayableOut] = []


class CompanySummary(CamelModel):
    id: int
    name: str
