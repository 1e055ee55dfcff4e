"""Last-writer-wins conflict policy.

The comparator only looks at ``updatedAt``. There is no field-level merge.
"""

from __future__ import annotations

import enum
from datetime import datetime

from ..timeutil import as_utc


class Resolution(str, enum.Enum):
    ACCEPT = "accept"
    REJECT = "reject"


def compare(server_updated_at: datetime | None, incoming_updated_at: datetime | None) -> Resolution:
    """Decide whether an incoming write may overwrite the server copy.

    Rejects only when both timestamps are known and the server one is
    strictly newer. Equal timestamps favour the incoming write, and a missing
    timestamp on either side accepts.
    """
    if server_updated_at is None or incoming_updated_at is None:
        return Resolution.ACCEPT
    if as_utc(server_updated_at) > as_utc(incoming_updated_at):
        return Resolution.REJECT
    return Resolution.ACCEPT
