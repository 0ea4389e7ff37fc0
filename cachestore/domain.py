"""Defines session concepts for the cache-backed session store."""

from typing import Any, Dict, NamedTuple, Optional

DEFAULT_MAX_AGE = 86400 * 30


class Options(NamedTuple):
    """Cookie attributes for a session."""

    path: str = '/'
    """Path for which the cookie is valid."""

    domain: Optional[str] = None
    """Domain for which the cookie is valid. ``None`` means the request host."""

    max_age: int = DEFAULT_MAX_AGE
    """
    Cookie lifetime in seconds.

    Zero means a browser-session cookie; a negative value expires the cookie
    and deletes the session from the store on the next save.
    """

    secure: bool = False
    """Restrict the cookie to HTTPS."""

    http_only: bool = False
    """Hide the cookie from client-side scripts."""

    same_site: Optional[str] = None
    """One of ``'Strict'``, ``'Lax'``, ``'None'``, or unset."""


class Session(object):
    """
    A named, request-scoped session.

    ``values`` is the only part that is written to the cache; ``id`` is the
    only part that is written to the cookie.
    """

    def __init__(self, store: Any, name: str,
                 options: Optional[Options] = None) -> None:
        self.id = ''
        self.values: Dict[str, Any] = {}
        self.is_new = True
        self.options = options if options is not None else Options()
        self.store = store
        self._name = name

    @property
    def name(self) -> str:
        """The name of the session, which is also the cookie name."""
        return self._name

    def save(self, request: Any, response: Any) -> None:
        """Save the session using the store it was created by."""
        self.store.save(request, response, self)

    def __repr__(self) -> str:
        return (f'Session(name={self._name!r}, id={self.id!r},'
                f' is_new={self.is_new!r})')
