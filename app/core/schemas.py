from datetime import time
from typing import Annotated
from pydantic import BaseModel, ConfigDict, AfterValidator, PlainSerializer
from pydantic.alias_generators import to_camel

def _minute_precision(t: time) -> time:
    if t.second or t.microsecond:
        raise ValueError("times have minute precision (HH:MM)")
    if t.tzinfo is not None:
        raise ValueError("times are clinic-local and must not carry a timezone")
    return t

# "HH:MM" on the wire, datetime.time in Python (model_dump() keeps time objects)
HHMM = Annotated[
    time,
    AfterValidator(_minute_precision),
    PlainSerializer(lambda t: t.strftime("%H:%M"), return_type=str, when_used="json"),
]

class ApiModel(BaseModel):
    """Accepts camelCase (web client) or snake_case, emits camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)
