from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional, Type, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy import Enum as SQLEnum


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def coerce_datetime(value: Union[str, date, datetime, None]) -> Optional[datetime]:
    """
    Accept ``YYYY-MM-DD`` as well as full ISO timestamps for datetime fields.

    Naive values are taken to be UTC.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = value.strip()
        if len(text) == 10:
            text = f"{text}T00:00:00"
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def enum_column_type(enum_cls: Type[Enum], name: str) -> SQLEnum:
    """Column type that stores the enum *values* (``checked-in``, ``A+``)."""
    return SQLEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )
