import threading
from typing import Dict, Optional


class RoomMembership:
    """connection_id -> current room, at most one room per connection.

    Rooms are never stored on their own; a room exists while somebody is in it.
    """

    def __init__(self):
        self._rooms: Dict[str, str] = {}
        self._lock = threading.Lock()

    def switch_room(self, connection_id: str, new_room: str) -> Optional[str]:
        """Make `new_room` current and return the room that was current before."""
        with self._lock:
            previous = self._rooms.get(connection_id)
            self._rooms[connection_id] = new_room
            return previous

    def clear(self, connection_id: str) -> Optional[str]:
        with self._lock:
            return self._rooms.pop(connection_id, None)

    def current_room(self, connection_id: str) -> Optional[str]:
        with self._lock:
            return self._rooms.get(connection_id)

    def occupied_rooms(self) -> Dict[str, int]:
        """Room name -> member count, for rooms with at least one member."""
        counts: Dict[str, int] = {}
        with self._lock:
            for room in self._rooms.values():
                counts[room] = counts.get(room, 0) + 1
        return counts
