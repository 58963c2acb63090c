from chathub.config import logger, UNKNOWN_USER
from chathub.registry import ConnectionRegistry
from chathub.utils import now_ts


class PrivateMessageRouter:
    """Direct messages between online users.

    Delivery is online-only: a message to a user with no live connection is
    dropped without telling the sender, and nothing is kept for later.
    """

    def __init__(self, registry: ConnectionRegistry, broadcaster):
        self.registry = registry
        self.broadcaster = broadcaster

    async def send_private(self, sender_connection_id: str, recipient_username: str, text: str) -> bool:
        sender_name = self.registry.username_of(sender_connection_id) or UNKNOWN_USER

        recipient_id = self.registry.lookup_by_username(recipient_username)
        if recipient_id is None:
            logger.debug(f"Private message to offline user '{recipient_username}' dropped")
            return False

        message = {
            'from': sender_name,
            'to': recipient_username,
            'text': text,
            'ts': now_ts()
        }

        await self.broadcaster.deliver_to_connection(recipient_id, 'private_message', dict(message, is_echo=False))
        # Echo so the sender's own view shows the outgoing message
        await self.broadcaster.deliver_to_connection(sender_connection_id, 'private_message', dict(message, is_echo=True))
        return True
