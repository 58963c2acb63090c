from chathub.hub import ChatHub


async def send_error(hub: ChatHub, connection_id, message):
    await hub.broadcaster.deliver_to_connection(connection_id, 'error', {
        'message': message
    })


async def handle_join_room(hub, connection_id, payload):
    """{'action': 'join_room', 'room': 'lobby'}"""
    room = payload.get('room')

    if not isinstance(room, str) or not room:
        await send_error(hub, connection_id, 'join_room requires room')
        return

    await hub.join_room(connection_id, room)


async def handle_message(hub, connection_id, payload):
    """{'action': 'message', 'room': 'lobby', 'text': 'hi'}"""
    room = payload.get('room')
    text = payload.get('text', '')

    if not isinstance(room, str) or not room:
        await send_error(hub, connection_id, 'message requires room')
        return

    if not text:
        await send_error(hub, connection_id, 'message text is empty')
        return

    await hub.send_message(connection_id, str(text), room)


async def handle_typing(hub, connection_id, payload):
    """{'action': 'typing', 'room': 'lobby', 'is_typing': true}"""
    is_typing = payload.get('is_typing', True)

    if not isinstance(is_typing, bool):
        await send_error(hub, connection_id, 'is_typing must be true or false')
        return

    await hub.notify_typing(connection_id, is_typing, payload.get('room'))


async def handle_stop_typing(hub, connection_id, payload):
    """{'action': 'stop_typing', 'room': 'lobby'}"""
    await hub.notify_typing(connection_id, False, payload.get('room'))


async def handle_private_message(hub, connection_id, payload):
    """{'action': 'private_message', 'to': 'recipient_name', 'text': 'message'}"""
    recipient_name = payload.get('to')
    text = payload.get('text', '')

    if not recipient_name:
        await send_error(hub, connection_id, 'private message requires recipient name')
        return

    if not text:
        await send_error(hub, connection_id, 'private message text is empty')
        return

    # Offline recipients are dropped silently
    await hub.send_private_message(connection_id, recipient_name, str(text))


async def handle_list_users(hub, connection_id, payload):
    await hub.broadcaster.deliver_to_connection(connection_id, 'user_list', {
        'users': hub.list_users()
    })


async def handle_list_rooms(hub, connection_id, payload):
    await hub.broadcaster.deliver_to_connection(connection_id, 'rooms_list', {
        'rooms': hub.list_rooms()
    })


ACTION_HANDLERS = {
    'join_room': handle_join_room,
    'message': handle_message,
    'typing': handle_typing,
    'stop_typing': handle_stop_typing,
    'private_message': handle_private_message,
    'list_users': handle_list_users,
    'list_rooms': handle_list_rooms,
}
