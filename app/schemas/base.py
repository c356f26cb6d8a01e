"""
Shared schema types.

Timestamps are stored as naive UTC, so they are serialized with an explicit
Z suffix for clients.
"""

from datetime import datetime
from typing import Annotated

from pydantic import PlainSerializer


def _to_utc_string(dt: datetime | None) -> str | None:
    return dt.strftime("%Y-%m-%dT%H:%M:%SZ") if dt else None


UTCDatetime = Annotated[datetime, PlainSerializer(_to_utc_string, return_type=str)]

UTCDatetimeOptional = Annotated[
    datetime | None, PlainSerializer(_to_utc_string, return_type=str | None)
]
