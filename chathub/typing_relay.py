from typing import Optional

from chathub.config import UNKNOWN_USER
from chathub.membership import RoomMembership
from chathub.registry import ConnectionRegistry


class TypingIndicatorRelay:
    """Relays start/stop typing signals to the caller's current room.

    Holds no typing state; throttling is left to the clients.
    """

    def __init__(self, registry: ConnectionRegistry, membership: RoomMembership, broadcaster):
        self.registry = registry
        self.membership = membership
        self.broadcaster = broadcaster

    async def notify_typing(self, connection_id: str, is_typing: bool, room: Optional[str] = None) -> bool:
        current = self.membership.current_room(connection_id)
        if current is None:
            return False
        if room is not None and room != current:
            return False

        username = self.registry.username_of(connection_id) or UNKNOWN_USER
        await self.broadcaster.deliver_to_group(current, 'typing_notification', {
            'user': username,
            'is_typing': bool(is_typing)
        })
        return True
