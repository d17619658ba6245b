from datetime import UTC, date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def coerce_client_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ValueError("Invalid date, expected ISO 8601 (YYYY-MM-DD)") from exc
    else:
        raise ValueError("Invalid date, expected ISO 8601 (YYYY-MM-DD)")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC).replace(tzinfo=None)
    return parsed


ClientDatetime = Annotated[datetime, BeforeValidator(coerce_client_datetime)]

CENT = Decimal("0.01")
# Largest value a Numeric(10, 2) column holds.
MAX_MONEY = Decimal("99999999.99")


def coerce_money(value: Any) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise ValueError("Must be a number")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError("Must be a number") from exc
    if not amount.is_finite():
        raise ValueError("Must be a number")
    if amount <= 0:
        raise ValueError("Must be greater than 0")
    if amount > MAX_MONEY:
        raise ValueError(f"Must not exceed {MAX_MONEY}")
    if amount != amount.quantize(CENT):
        raise ValueError("Use at most 2 decimal places")
    return amount.quantize(CENT)


Money = Annotated[Decimal, BeforeValidator(coerce_money)]


class UserSummary(ApiModel):
    id: int
    username: str


class MessageResponse(ApiModel):
    message: str
