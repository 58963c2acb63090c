"""In-memory presence and message routing for a multi-room chat."""

from chathub.hub import ChatHub, create_hub

__version__ = '0.1.0'

__all__ = ['ChatHub', 'create_hub', '__version__']
