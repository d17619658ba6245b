from datetime import datetime

from pydantic import Field

from homebase.schemas.common import ApiModel, Money, UserSummary


class ShoppingItemCreateRequest(ApiModel):
    name: str = Field(min_length=1, max_length=120)
    cost: Money


class ShoppingItemBoughtRequest(ApiModel):
    id: int
    bought: bool = True


class ShoppingItemResponse(ApiModel):
    id: int
    household_id: int
    name: str
    cost: float
    created_by: UserSummary | None = None
    bought_by: UserSummary | None = None
    created_at: datetime
    updated_at: datetime


class ShoppingListResponse(ApiModel):
    items: list[ShoppingItemResponse]
    count: int


class ShoppingCountResponse(ApiModel):
    count: int
