"""Read-it-later link manager: a dump of unread links and an archive of read ones.

Layout (one store directory):
    links.json    # {"v":1, "dump":[...], "archive":[...]}
    links.lock    # flock target for cross-process writes

Record shape:
    {"id":"ab12cd34", "url":..., "comment":..., "tags":[...], "created_at":...}

Links only ever move dump -> archive; nothing is deleted and ids are never
reused.
"""

from tsundoku.config import TsdConfig, init_config, load_config
from tsundoku.models import LinkId, LinkRecord, State, new_link_id, new_record
from tsundoku.store import LinkStore

__all__ = [
    "LinkId",
    "LinkRecord",
    "LinkStore",
    "State",
    "TsdConfig",
    "init_config",
    "load_config",
    "new_link_id",
    "new_record",
]
