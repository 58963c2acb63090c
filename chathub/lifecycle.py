from typing import Optional

from chathub.config import logger, UNKNOWN_USER, REQUIRE_ROOM_MEMBERSHIP
from chathub.membership import RoomMembership
from chathub.registry import ConnectionRegistry
from chathub.utils import now_ts


class SessionLifecycleCoordinator:
    """
    Connect, room switching, room messages and disconnect for each connection.

    A connection goes Unconnected -> Connected (no room) -> Connected (in a room);
    disconnect is terminal. Every presence change re-sends the user list to all.
    """

    def __init__(self, registry: ConnectionRegistry, membership: RoomMembership, broadcaster,
                 require_room_membership: bool = REQUIRE_ROOM_MEMBERSHIP):
        self.registry = registry
        self.membership = membership
        self.broadcaster = broadcaster
        self.require_room_membership = require_room_membership

    def _username(self, connection_id: str) -> str:
        return self.registry.username_of(connection_id) or UNKNOWN_USER

    async def connect(self, connection_id: str, username: Optional[str]) -> None:
        username = username or UNKNOWN_USER
        self.registry.register(connection_id, username)
        logger.info(f"Connected: {username} ({connection_id})")
        await self.broadcast_user_list()

    async def join_room(self, connection_id: str, room: str) -> Optional[str]:
        """Move the connection into `room`; returns the room it was in before."""
        if not room:
            return None

        username = self._username(connection_id)
        old_room = self.membership.switch_room(connection_id, room)

        if old_room is not None and old_room != room:
            await self.broadcaster.remove_from_group(connection_id, old_room)
            await self.broadcaster.deliver_to_group(old_room, 'notification', {
                'message': f'{username} has left the room.'
            })

        await self.broadcaster.add_to_group(connection_id, room)

        if old_room != room:
            await self.broadcaster.deliver_to_group(room, 'notification', {
                'message': f"{username} joined the room '{room}'."
            })

        await self.broadcast_user_list()
        return old_room

    async def send_message(self, connection_id: str, text: str, room: str) -> bool:
        if not room:
            return False

        if self.require_room_membership and self.membership.current_room(connection_id) != room:
            logger.warning(f"Dropped message from {connection_id} to room '{room}' it has not joined")
            return False

        await self.broadcaster.deliver_to_group(room, 'message', {
            'room': room,
            'from': self._username(connection_id),
            'text': text,
            'ts': now_ts()
        })
        return True

    async def disconnect(self, connection_id: str) -> None:
        username = self.registry.unregister(connection_id) or UNKNOWN_USER
        room = self.membership.clear(connection_id)

        if room is not None:
            await self.broadcaster.remove_from_group(connection_id, room)
            await self.broadcaster.deliver_to_group(room, 'notification', {
                'message': f'{username} has left the chat.'
            })

        logger.info(f"Disconnected: {username} ({connection_id})")
        await self.broadcast_user_list()

    async def broadcast_user_list(self) -> None:
        await self.broadcaster.deliver_to_all('user_list', {
            'users': self.registry.snapshot_usernames()
        })
