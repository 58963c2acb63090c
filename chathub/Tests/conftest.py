from collections import defaultdict

import pytest

from chathub.broadcaster import make_event
from chathub.hub import ChatHub


class RecordingBroadcaster:
    """In-memory stand-in for the transport: records every delivery per recipient."""

    def __init__(self):
        self.connections = []
        self.groups = defaultdict(set)
        self.calls = []          # (target kind, target, event) once per delivery call
        self.deliveries = []     # (connection_id, event) once per recipient

    def attach(self, connection_id):
        self.connections.append(connection_id)

    def detach(self, connection_id):
        self.connections.remove(connection_id)
        for members in self.groups.values():
            members.discard(connection_id)

    async def add_to_group(self, connection_id, room):
        self.groups[room].add(connection_id)

    async def remove_from_group(self, connection_id, room):
        self.groups[room].discard(connection_id)

    async def deliver_to_all(self, event, payload):
        item = make_event(event, payload)
        self.calls.append(('all', None, item))
        for cid in list(self.connections):
            self.deliveries.append((cid, item))

    async def deliver_to_group(self, room, event, payload):
        item = make_event(event, payload)
        self.calls.append(('group', room, item))
        for cid in list(self.groups.get(room, ())):
            self.deliveries.append((cid, item))

    async def deliver_to_connection(self, connection_id, event, payload):
        item = make_event(event, payload)
        self.calls.append(('connection', connection_id, item))
        if connection_id in self.connections:
            self.deliveries.append((connection_id, item))

    def received(self, connection_id, action=None):
        return [
            item for cid, item in self.deliveries
            if cid == connection_id and (action is None or item['action'] == action)
        ]


@pytest.fixture
def recorder():
    return RecordingBroadcaster()


@pytest.fixture
def hub(recorder):
    return ChatHub(recorder)


@pytest.fixture
def connect(hub, recorder):
    """Attaches a connection to the recorder and runs the hub's connect."""
    async def _connect(connection_id, username):
        recorder.attach(connection_id)
        await hub.on_connect(connection_id, username)
        return connection_id
    return _connect


@pytest.fixture
def disconnect(hub, recorder):
    async def _disconnect(connection_id):
        await hub.on_disconnect(connection_id)
        recorder.detach(connection_id)
    return _disconnect
