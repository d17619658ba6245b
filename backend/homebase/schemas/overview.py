from homebase.schemas.bill import BillResponse
from homebase.schemas.chore import ChoreResponse
from homebase.schemas.common import ApiModel
from homebase.schemas.event import EventResponse
from homebase.schemas.shopping import ShoppingItemResponse


class OverviewResponse(ApiModel):
    events: list[EventResponse]
    chores: list[ChoreResponse]
    bills: list[BillResponse]
    shopping_items: list[ShoppingItemResponse]


class OverviewEventsResponse(ApiModel):
    events: list[EventResponse]


class OverviewChoresResponse(ApiModel):
    chores: list[ChoreResponse]


class OverviewBillsResponse(ApiModel):
    bills: list[BillResponse]


class OverviewShoppingResponse(ApiModel):
    shopping_items: list[ShoppingItemResponse]
