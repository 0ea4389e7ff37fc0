"""
Per-request session registry.

The registry lives in the WSGI environ of the request, so each request gets
its own and it goes away with the request. It ensures that a named session
is loaded from the store at most once per request.
"""

from typing import Any, Dict, List, Optional, Tuple

from .domain import Session
from .exceptions import SessionError

import logging

logger = logging.getLogger(__name__)

REGISTRY_KEY = 'cachestore.registry'


class Registry(object):
    """Holds the sessions that have been loaded during a request."""

    def __init__(self, request: Any) -> None:
        self.request = request
        self._sessions: Dict[str, Tuple[Session, Optional[SessionError]]] = {}

    def get(self, store: Any, name: str) -> Session:
        """
        Get a named session, loading it with ``store`` on first access.

        If the first load failed, the same error (carrying the same session)
        is raised again on every subsequent call.
        """
        if name not in self._sessions:
            try:
                session = store.new(self.request, name)
                error: Optional[SessionError] = None
            except SessionError as e:
                session, error = e.session, e
            self._sessions[name] = (session, error)
        session, error = self._sessions[name]
        if error is not None:
            raise error
        return session

    def save(self, response: Any) -> None:
        """Save all of the sessions in the registry to ``response``."""
        errors: List[Exception] = []
        for name, (session, _) in self._sessions.items():
            try:
                session.save(self.request, response)
            except Exception as e:
                logger.error('Failed to save session %s: %s', name, e)
                errors.append(e)
        if errors:
            raise errors[0]


def get_registry(request: Any) -> Registry:
    """Get the :class:`Registry` for ``request``, creating it if needed."""
    registry: Optional[Registry] = request.environ.get(REGISTRY_KEY)
    if registry is None:
        registry = Registry(request)
        request.environ[REGISTRY_KEY] = registry
    return registry
