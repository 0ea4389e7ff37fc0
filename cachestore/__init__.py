"""
Cache-backed sessions for Flask and werkzeug applications.

Session values are held in a key-value store (Redis). A signed, optionally
encrypted cookie carries the session ID to the client and back.

See :mod:`.store`.
"""

from .domain import Options, Session
from .store import SessionStore, generate_session_id

__all__ = ['Options', 'Session', 'SessionStore', 'generate_session_id']
