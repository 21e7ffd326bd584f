"""
Boundary layer data model(s).

These objects are used to communicate with the persistence layer.
Both the session store (higher) and the db layer (lower) use the model defined here,
which decouples the storage specific representation from the auth domain.
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class SessionRecord:
    """
    One persisted key/value entry, shaped like a browser cookie.
    ----
    `max_age` is the retention window in seconds, `expires_at` the moment the record stops being readable.
    """

    key: str
    value: str
    path: str
    same_site: str
    max_age: int
    expires_at: datetime
