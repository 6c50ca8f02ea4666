"""Connection registry — identifier → subscribers currently connected.

Learn: This is the only shared mutable state in the relay. Rules:

- An identifier is present only while it has at least one subscriber.
  The last unregister deletes the entry, so memory tracks exactly the
  active identifiers and /health never shows stale ids.
- unregister() is a no-op for unknown identifiers or subscribers. A
  connection can be closed twice (send failure, then the socket's own
  close) and both paths call it.
- snapshot() returns a tuple. Callers iterate it after the lock is
  released, and later register/unregister calls can't change it under them.
- Duplicates aren't rejected. Registering the same subscriber twice means
  it gets every event twice; the WebSocket endpoint registers exactly once.

All critical sections are plain dict/list operations with no awaits, so a
single threading.Lock is enough and stays correct if the registry is ever
touched from a worker thread.
"""

import threading
from typing import Generic, TypeVar

S = TypeVar("S")


class ConnectionRegistry(Generic[S]):
    def __init__(self) -> None:
        self._entries: dict[str, list[S]] = {}
        self._lock = threading.Lock()

    def register(self, identifier: str, subscriber: S) -> int:
        """Add a subscriber. Returns the identifier's new subscriber count."""
        with self._lock:
            members = self._entries.setdefault(identifier, [])
            members.append(subscriber)
            return len(members)

    def unregister(self, identifier: str, subscriber: S) -> bool:
        """Remove a subscriber. Returns True if it was registered."""
        with self._lock:
            members = self._entries.get(identifier)
            if not members:
                return False
            try:
                members.remove(subscriber)
            except ValueError:
                return False
            if not members:
                del self._entries[identifier]
            return True

    def snapshot(self, identifier: str) -> tuple[S, ...]:
        with self._lock:
            return tuple(self._entries.get(identifier, ()))

    def entries(self) -> dict[str, int]:
        """Identifier → subscriber count, in first-registration order."""
        with self._lock:
            return {identifier: len(members) for identifier, members in self._entries.items()}

    def __contains__(self, identifier: object) -> bool:
        with self._lock:
            return identifier in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
