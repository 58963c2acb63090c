import asyncio
import json
import uuid
from urllib.parse import parse_qs, urlsplit

from websockets.asyncio.server import serve
from websockets.exceptions import ConnectionClosedOK, ConnectionClosedError

from chathub.config import logger, MAX_MESSAGE_SIZE, SERVER_HOST, SERVER_PORT, IDENTITY_HEADER, UNKNOWN_USER
from chathub.handlers import ACTION_HANDLERS, send_error
from chathub.hub import create_hub

hub = create_hub()


def resolve_username(ws):
    """Authenticated name from the handshake: identity header first, then ?user=."""
    request = getattr(ws, 'request', None)
    if request is None:
        return None

    name = request.headers.get(IDENTITY_HEADER)
    if not name:
        query = parse_qs(urlsplit(request.path).query)
        name = (query.get('user') or [None])[0]

    if name:
        name = name.strip()
    return name or None


async def ws_handler(ws):
    """Serves one client connection for its whole lifetime."""
    connection_id = uuid.uuid4().hex
    username = resolve_username(ws) or UNKNOWN_USER

    await hub.broadcaster.attach(connection_id, ws)

    try:
        await hub.broadcaster.deliver_to_connection(connection_id, 'welcome', {
            'connection_id': connection_id,
            'username': username,
            'message': 'Welcome to chat! Join a room to start talking.'
        })
        await hub.on_connect(connection_id, username)

        async for raw in ws:
            if len(raw) > MAX_MESSAGE_SIZE:
                await send_error(hub, connection_id, f'Message too large. Max size: {MAX_MESSAGE_SIZE} bytes')
                continue

            try:
                payload = json.loads(raw)
            except json.JSONDecodeError:
                await send_error(hub, connection_id, 'invalid json')
                continue

            if not isinstance(payload, dict):
                await send_error(hub, connection_id, 'invalid json')
                continue

            action = payload.get('action')
            handler = ACTION_HANDLERS.get(action)

            if handler:
                try:
                    await handler(hub, connection_id, payload)
                except Exception as e:
                    logger.error(f"Handler error for action '{action}': {e}", exc_info=True)
                    await send_error(hub, connection_id, f'handler error: {str(e)[:100]}')
            else:
                logger.warning(f"Unknown action from {connection_id}: {action}")
                await send_error(hub, connection_id, f'unknown action {action}')

    except (ConnectionClosedOK, ConnectionClosedError):
        pass
    except asyncio.CancelledError:
        pass
    except Exception as e:
        logger.critical(f"Unhandled exception in ws_handler: {e}", exc_info=True)
    finally:
        await hub.on_disconnect(connection_id)
        await hub.broadcaster.detach(connection_id)


async def start_server(host=SERVER_HOST, port=SERVER_PORT):
    """Starts the WebSocket server and runs until cancelled."""
    logger.info(f"Starting server on ws://{host}:{port}")
    try:
        async with serve(ws_handler, host, port):
            await asyncio.Future()
    except Exception as e:
        logger.critical(f"Server error: {e}", exc_info=True)
        raise
