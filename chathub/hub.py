from typing import List, Optional

from chathub.broadcaster import GroupBroadcaster, WebSocketBroadcaster
from chathub.config import REQUIRE_ROOM_MEMBERSHIP
from chathub.lifecycle import SessionLifecycleCoordinator
from chathub.membership import RoomMembership
from chathub.private_router import PrivateMessageRouter
from chathub.registry import ConnectionRegistry
from chathub.typing_relay import TypingIndicatorRelay


class ChatHub:
    """Entry point for the transport layer.

    Owns the shared registry and membership stores and routes each inbound
    operation to the component responsible for it.
    """

    def __init__(self, broadcaster: GroupBroadcaster, require_room_membership: bool = REQUIRE_ROOM_MEMBERSHIP):
        self.broadcaster = broadcaster
        self.registry = ConnectionRegistry()
        self.membership = RoomMembership()
        self.sessions = SessionLifecycleCoordinator(
            self.registry, self.membership, broadcaster,
            require_room_membership=require_room_membership
        )
        self.typing = TypingIndicatorRelay(self.registry, self.membership, broadcaster)
        self.private = PrivateMessageRouter(self.registry, broadcaster)

    async def on_connect(self, connection_id: str, username: Optional[str]) -> None:
        await self.sessions.connect(connection_id, username)

    async def on_disconnect(self, connection_id: str) -> None:
        await self.sessions.disconnect(connection_id)

    async def join_room(self, connection_id: str, room: str) -> Optional[str]:
        return await self.sessions.join_room(connection_id, room)

    async def send_message(self, connection_id: str, text: str, room: str) -> bool:
        return await self.sessions.send_message(connection_id, text, room)

    async def notify_typing(self, connection_id: str, is_typing: bool, room: Optional[str] = None) -> bool:
        return await self.typing.notify_typing(connection_id, is_typing, room)

    async def send_private_message(self, connection_id: str, recipient_username: str, text: str) -> bool:
        return await self.private.send_private(connection_id, recipient_username, text)

    def list_users(self) -> List[str]:
        return self.registry.snapshot_usernames()

    def list_rooms(self) -> List[dict]:
        return [
            {'name': name, 'members': count}
            for name, count in sorted(self.membership.occupied_rooms().items())
        ]


def create_hub(broadcaster: Optional[GroupBroadcaster] = None, **kwargs) -> ChatHub:
    return ChatHub(broadcaster if broadcaster is not None else WebSocketBroadcaster(), **kwargs)
