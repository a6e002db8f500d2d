"""
Shared schema building blocks

API payloads use camelCase keys; Python code uses snake_case field names.
"""

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, AfterValidator, PlainSerializer
from pydantic.alias_generators import to_camel

from chatapp.utils.datetime_utils import as_utc, isoformat


# Datetimes are always serialized as UTC ("...Z")
UTCDateTime = Annotated[
    datetime,
    AfterValidator(as_utc),
    PlainSerializer(isoformat, return_type=str, when_used="json"),
]


class APIModel(BaseModel):
    """Base model with camelCase aliases, accepting either spelling on input"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
        protected_namespaces = ()
