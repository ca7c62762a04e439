from linkdump.db.models.database_version import DatabaseVersion
from linkdump.db.models.friend import Friend
from linkdump.db.models.link import Link, join_tags, split_tags

__all__ = [
    "DatabaseVersion",
    "Friend",
    "Link",
    "join_tags",
    "split_tags",
]
