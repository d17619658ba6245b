from datetime import datetime

from pydantic import Field

from homebase.schemas.common import ApiModel, ClientDatetime, Money, UserSummary


class BillCreateRequest(ApiModel):
    name: str = Field(min_length=1, max_length=120)
    description: str = Field(default="", max_length=2000)
    amount: Money
    due_date: ClientDatetime
    cycle: int = 0


class BillUpdateRequest(ApiModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    description: str | None = Field(default=None, max_length=2000)
    amount: Money | None = None
    due_date: ClientDatetime | None = None
    cycle: int | None = None


class BillPaidToggleRequest(ApiModel):
    id: int
    paid: bool


class BillResponse(ApiModel):
    id: int
    household_id: int
    name: str
    description: str
    amount: float
    due_date: datetime
    cycle: int
    created_by: UserSummary | None = None
    paid_by: UserSummary | None = None
    created_at: datetime
    updated_at: datetime


class BillListResponse(ApiModel):
    bills: list[BillResponse]
    count: int


class BillActionResponse(ApiModel):
    message: str
    bill: BillResponse
