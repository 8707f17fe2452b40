# app/db/models/__init__.py
from .message import Message, MessageRole
