import threading
from typing import Dict, List, Optional


class ConnectionRegistry:
    """Live connections: connection_id -> username.

    Entries are added on connect and removed on disconnect. Every operation
    takes the internal lock, so callers never need one of their own.
    """

    def __init__(self):
        self._users: Dict[str, str] = {}
        self._lock = threading.Lock()

    def register(self, connection_id: str, username: str) -> None:
        with self._lock:
            self._users[connection_id] = username

    def unregister(self, connection_id: str) -> Optional[str]:
        """Remove the connection, returning its username or None if unknown."""
        with self._lock:
            return self._users.pop(connection_id, None)

    def username_of(self, connection_id: str) -> Optional[str]:
        with self._lock:
            return self._users.get(connection_id)

    def lookup_by_username(self, username: str) -> Optional[str]:
        """First connection carrying `username`, order unspecified.

        A user logged in twice has several connections; which one is returned
        is not guaranteed to be the most recent.
        """
        with self._lock:
            for connection_id, name in self._users.items():
                if name == username:
                    return connection_id
        return None

    def snapshot_usernames(self) -> List[str]:
        with self._lock:
            return list(self._users.values())

    def __contains__(self, connection_id) -> bool:
        with self._lock:
            return connection_id in self._users

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)
