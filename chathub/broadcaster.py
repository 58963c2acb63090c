import asyncio
from collections import defaultdict
from typing import Dict, Protocol, Set

from websockets.exceptions import ConnectionClosedOK, ConnectionClosedError

from chathub.config import logger, MAX_QUEUE_SIZE, SEND_TIMEOUT
from chathub.utils import json_msg


class GroupBroadcaster(Protocol):
    """
    Delivery capability the hub depends on.

    Every delivery is fire-and-forget: implementations must not wait for the
    receiving client, and a failing recipient must not stop the others.
    Events reach clients as ``{'action': event, **payload}``.
    """

    async def deliver_to_all(self, event: str, payload: dict) -> None:
        ...

    async def deliver_to_group(self, room: str, event: str, payload: dict) -> None:
        ...

    async def deliver_to_connection(self, connection_id: str, event: str, payload: dict) -> None:
        ...

    async def add_to_group(self, connection_id: str, room: str) -> None:
        ...

    async def remove_from_group(self, connection_id: str, room: str) -> None:
        ...


def make_event(event: str, payload: dict) -> dict:
    item = {'action': event}
    item.update(payload)
    return item


async def send_to_ws_safe(ws, obj):
    try:
        await ws.send(json_msg(obj))
    except (ConnectionClosedOK, ConnectionClosedError):
        pass
    except Exception as e:
        logger.error(f"Error sending message: {e}", exc_info=True)


async def client_writer(ws, outgoing_queue: asyncio.Queue, send_timeout: float = SEND_TIMEOUT):
    """Sends everything from the per-client outgoing queue to the websocket, in order."""
    try:
        while True:
            item = await outgoing_queue.get()
            try:
                async with asyncio.timeout(send_timeout):
                    await send_to_ws_safe(ws, item)
            except TimeoutError:
                logger.warning(f"Send timed out, dropping '{item.get('action')}' event")
            outgoing_queue.task_done()
    except asyncio.CancelledError:
        return


class WebSocketBroadcaster:
    """
    Fan-out over attached websockets.

    Each connection owns a bounded outgoing queue drained by its own writer
    task. Delivering only enqueues, so a slow socket never holds up the rest
    of a fan-out; a connection whose queue overflows is closed instead.
    """

    def __init__(self, max_queue_size: int = MAX_QUEUE_SIZE, send_timeout: float = SEND_TIMEOUT):
        self.max_queue_size = max_queue_size
        self.send_timeout = send_timeout
        self.clients: Dict[str, dict] = {}  # connection_id -> {'ws', 'outgoing', 'writer_task', 'evicted'}
        self.groups: Dict[str, Set[str]] = defaultdict(set)  # room -> connection ids
        self._evictions: Set[asyncio.Task] = set()

    async def attach(self, connection_id: str, ws) -> dict:
        outgoing = asyncio.Queue(maxsize=self.max_queue_size)
        client = {
            'ws': ws,
            'outgoing': outgoing,
            'writer_task': None,
            'evicted': False,
        }
        client['writer_task'] = asyncio.create_task(client_writer(ws, outgoing, self.send_timeout))
        self.clients[connection_id] = client
        return client

    async def detach(self, connection_id: str) -> None:
        client = self.clients.pop(connection_id, None)

        for room in list(self.groups):
            self._discard(connection_id, room)

        if client is None:
            return

        writer = client.get('writer_task')
        if writer:
            writer.cancel()
            # gather keeps the writer's own CancelledError from ending the caller
            result, = await asyncio.gather(writer, return_exceptions=True)
            if isinstance(result, Exception):
                logger.error(f"Error cancelling writer task: {result}", exc_info=result)

    async def add_to_group(self, connection_id: str, room: str) -> None:
        self.groups[room].add(connection_id)

    async def remove_from_group(self, connection_id: str, room: str) -> None:
        self._discard(connection_id, room)

    async def deliver_to_all(self, event: str, payload: dict) -> None:
        item = make_event(event, payload)
        for connection_id in list(self.clients):
            self._enqueue(connection_id, item)

    async def deliver_to_group(self, room: str, event: str, payload: dict) -> None:
        item = make_event(event, payload)
        for connection_id in list(self.groups.get(room, ())):
            self._enqueue(connection_id, item)

    async def deliver_to_connection(self, connection_id: str, event: str, payload: dict) -> None:
        self._enqueue(connection_id, make_event(event, payload))

    def _discard(self, connection_id: str, room: str) -> None:
        members = self.groups.get(room)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self.groups[room]

    def _enqueue(self, connection_id: str, item: dict) -> None:
        client = self.clients.get(connection_id)
        if client is None or client['evicted']:
            return

        try:
            client['outgoing'].put_nowait(item)
        except asyncio.QueueFull:
            logger.warning(f"Client {connection_id} is too slow, disconnecting")
            client['evicted'] = True
            self._evict(client['ws'])
        except Exception as e:
            logger.error(f"Error queueing event for {connection_id}: {e}", exc_info=True)

    def _evict(self, ws) -> None:
        # Closing ends the session's receive loop, which runs the usual disconnect path.
        task = asyncio.create_task(self._close_slow(ws))
        self._evictions.add(task)
        task.add_done_callback(self._evictions.discard)

    async def _close_slow(self, ws) -> None:
        try:
            await ws.close(code=1008, reason='Too slow, disconnecting')
        except Exception as e:
            logger.error(f"Error closing slow client: {e}", exc_info=True)
