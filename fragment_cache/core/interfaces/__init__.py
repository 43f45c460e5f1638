from .store import BackendStore, InMemoryStore, KeyPattern, key_matches

__all__ = [
    "BackendStore",
    "InMemoryStore",
    "KeyPattern",
    "key_matches",
]
