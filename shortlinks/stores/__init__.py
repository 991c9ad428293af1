"""LinkStore implementations.

The SQL and Redis backends are imported from their own modules so that
importing this package does not pull in a database driver.
"""

from shortlinks.stores.base import InsertOutcome, InsertResult, LinkPage, LinkRecord, LinkStore
from shortlinks.stores.memory_store import MemoryLinkStore

__all__ = ["InsertOutcome", "InsertResult", "LinkPage", "LinkRecord", "LinkStore", "MemoryLinkStore"]
