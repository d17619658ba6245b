from datetime import datetime

from pydantic import Field

from homebase.schemas.common import ApiModel, ClientDatetime, UserSummary


class ChoreCreateRequest(ApiModel):
    name: str = Field(min_length=1, max_length=120)
    description: str = Field(default="", max_length=2000)
    due_date: ClientDatetime
    priority: int = Field(default=3, ge=1, le=5)
    cycle: int = 0
    repeat_count: int = Field(default=0, ge=0)


class ChoreUpdateRequest(ApiModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    description: str | None = Field(default=None, max_length=2000)
    due_date: ClientDatetime | None = None
    priority: int | None = Field(default=None, ge=1, le=5)


class ChoreDoneRequest(ApiModel):
    chore_id: int
    done: bool = True


class ChoreResponse(ApiModel):
    id: int
    household_id: int
    name: str
    description: str
    due_date: datetime
    priority: int
    done: bool
    done_by: UserSummary | None = None
    created_by: UserSummary | None = None
    parent_chore_id: int | None = None
    cycle: int
    repeat_count: int
    created_at: datetime
    updated_at: datetime


class ChoreWithChildrenResponse(ChoreResponse):
    child_chores: list[ChoreResponse] = Field(default_factory=list)


class ChoreListResponse(ApiModel):
    chores: list[ChoreResponse]
    count: int


class ChoreActionResponse(ApiModel):
    message: str
    chore: ChoreResponse
