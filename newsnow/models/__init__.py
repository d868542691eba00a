from .cache_entry import CacheEntry
from .user_account import UserAccount

__all__ = ["CacheEntry", "UserAccount"]
