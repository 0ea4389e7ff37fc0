"""
Cache-backed session store.

Session values are kept in a key-value store (Redis) under
``<key_prefix><session_id>``. The client only ever holds the session ID, in
a signed (and optionally encrypted) cookie named after the session.
"""

from base64 import b32encode
from datetime import datetime
from typing import Any, List, Optional, Union

import redis
from flask import Flask, current_app, request
from pytz import UTC

from . import config as defaults
from .codecs import Codec, SecureCookie, codecs_from_pairs, \
    generate_random_key, decode_multi
from .domain import DEFAULT_MAX_AGE, Options, Session
from .exceptions import ConfigurationError, DecodeError, InvalidCookie, \
    SessionCreationFailed, SessionDeletionFailed, SessionLoadFailed, \
    UnknownSession
from .registry import get_registry

import logging

logger = logging.getLogger(__name__)

ID_BYTES = 32
EXTENSION_KEY = 'cachestore'


def generate_session_id() -> str:
    """Generate a new session ID using only base32 characters."""
    return b32encode(generate_random_key(ID_BYTES)).decode('ascii').rstrip('=')


class SessionStore(object):
    """
    Stores session values in a key-value cache.

    The cache client is shared by all requests, and is expected to be thread
    safe (``redis.StrictRedis`` is). The store itself holds only
    configuration, which should not be changed once requests are being
    served.

    Parameters
    ----------
    client : :class:`redis.StrictRedis`
        Anything with ``get``, ``set``, and ``delete`` methods.
    key_prefix : str
        Prepended to session IDs to build cache keys.
    key_pairs : bytes
        Hash key and block key pairs used to build codecs; see
        :func:`.codecs.codecs_from_pairs`. The first pair is used to encode
        new values; older pairs can be kept for decoding during key rotation.

    """

    def __init__(self, client: Any, key_prefix: str = '',
                 *key_pairs: Optional[bytes]) -> None:
        if client is None:
            raise ConfigurationError('Cannot have a null cache client')
        codecs = codecs_from_pairs(*key_pairs)
        if not codecs:
            raise ConfigurationError('At least one hash key is required')
        self.client = client
        self.key_prefix = key_prefix
        self.codecs: List[Codec] = codecs
        self.options = Options(path='/', max_age=DEFAULT_MAX_AGE)

    def set_max_length(self, length: int) -> None:
        """
        Restrict the maximum encoded length of new sessions to ``length``.

        Zero means no limit, so use with caution. The default is 4096.
        Codecs that have no length limit are left alone.
        """
        for codec in self.codecs:
            if isinstance(codec, SecureCookie):
                codec.max_length(length)

    def max_age(self, age: int) -> None:
        """Set the default cookie lifetime and the codecs' maximum age."""
        self.options = self.options._replace(max_age=age)
        for codec in self.codecs:
            if isinstance(codec, SecureCookie):
                codec.max_age(age)

    def get(self, request: Any, name: str) -> Session:
        """
        Get the named session, via the registry of ``request``.

        The session is loaded at most once per request; see :meth:`new`.
        """
        return get_registry(request).get(self, name)

    def new(self, request: Any, name: str) -> Session:
        """
        Load the named session from the request cookie, or start a new one.

        Raises
        ------
        :class:`InvalidCookie`
            The cookie could not be authenticated. ``e.session`` is a new,
            empty session.
        :class:`UnknownSession`
            The cookie is valid but the cache has no entry for it.
            ``e.session`` carries the recovered ID and no values.
        :class:`SessionLoadFailed`
            The cache could not be read. ``e.session`` is as above.

        """
        session = Session(self, name, self.options._replace())
        cookie = request.cookies.get(name)
        if cookie is None:
            return session

        try:
            session_id = decode_multi(name, cookie, *self.codecs)
        except DecodeError as e:
            logger.debug('Invalid cookie for session %s: %s', name, e)
            raise InvalidCookie(f'Invalid session cookie: {e}', session) from e
        if not isinstance(session_id, str) or not session_id:
            raise InvalidCookie('Session cookie is malformed', session)

        session.id = session_id
        self._load(session)
        session.is_new = False
        return session

    def save(self, request: Any, response: Any, session: Session) -> None:
        """
        Write the session to the cache, and its cookie to ``response``.

        A session with a negative ``max_age`` is deleted from the cache and
        its cookie is expired instead.
        """
        if session.options.max_age < 0:
            if session.id:
                self._delete(session)
            self._set_cookie(response, session.name, '', session.options,
                             expires=datetime.now(UTC))
            return

        if not session.id:
            session.id = generate_session_id()
        # No cookie is issued unless the values are stored.
        self._save(session)
        encoded = self.codecs[0].encode(session.name, session.id)
        self._set_cookie(response, session.name, encoded, session.options)

    def _key(self, session: Session) -> str:
        return self.key_prefix + session.id

    def _save(self, session: Session) -> None:
        """Encode ``session.values`` and write them to the cache."""
        encoded = self.codecs[0].encode(session.name, session.values)
        key = self._key(session)
        try:
            self.client.set(key, encoded.encode('ascii'))
        except redis.exceptions.ConnectionError as e:
            raise SessionCreationFailed(f'Connection failed: {e}',
                                        session) from e
        except Exception as e:
            raise SessionCreationFailed(f'Failed to create: {e}',
                                        session) from e
        logger.debug('Saved session %s', key)

    def _load(self, session: Session) -> None:
        """Read the cache entry for ``session`` and decode it into values."""
        key = self._key(session)
        try:
            data: Optional[Union[bytes, str]] = self.client.get(key)
        except redis.exceptions.ConnectionError as e:
            raise SessionLoadFailed(f'Connection failed: {e}', session) from e
        except Exception as e:
            raise SessionLoadFailed(f'Failed to load: {e}', session) from e
        if data is None:
            logger.debug('No such session: %s', key)
            raise UnknownSession(f'Failed to find session {key}', session)

        if isinstance(data, bytes):
            data = data.decode('utf-8', 'replace')
        try:
            session.values = decode_multi(session.name, data, *self.codecs)
        except DecodeError as e:
            logger.debug('Invalid cache entry %s: %s', key, e)
            raise InvalidCookie(f'Invalid or corrupted session: {e}',
                                session) from e

    def _delete(self, session: Session) -> None:
        key = self._key(session)
        try:
            self.client.delete(key)
        except redis.exceptions.ConnectionError as e:
            raise SessionDeletionFailed(f'Connection failed: {e}',
                                        session) from e
        except Exception as e:
            raise SessionDeletionFailed(f'Failed to delete: {e}',
                                        session) from e
        logger.debug('Deleted session %s', key)

    def _set_cookie(self, response: Any, name: str, value: str,
                    options: Options,
                    expires: Optional[datetime] = None) -> None:
        # A max-age of zero means a cookie that lasts for the browser session;
        # a negative one expires the cookie now.
        if options.max_age < 0:
            max_age: Optional[int] = 0
        else:
            max_age = options.max_age if options.max_age > 0 else None
        response.set_cookie(name, value, max_age=max_age, expires=expires,
                            path=options.path,
                            domain=options.domain, secure=options.secure,
                            httponly=options.http_only,
                            samesite=options.same_site)


def init_app(app: Flask) -> None:
    """Set default configuration parameters for an application instance."""
    app.config.setdefault('REDIS_HOST', defaults.REDIS_HOST)
    app.config.setdefault('REDIS_PORT', defaults.REDIS_PORT)
    app.config.setdefault('REDIS_DATABASE', defaults.REDIS_DATABASE)
    app.config.setdefault('REDIS_CLUSTER', defaults.REDIS_CLUSTER)
    app.config.setdefault('SESSION_KEY_PREFIX', defaults.SESSION_KEY_PREFIX)
    app.config.setdefault('SESSION_HASH_KEY', defaults.SESSION_HASH_KEY)
    app.config.setdefault('SESSION_BLOCK_KEY', defaults.SESSION_BLOCK_KEY)
    app.config.setdefault('SESSION_OLD_HASH_KEY',
                          defaults.SESSION_OLD_HASH_KEY)
    app.config.setdefault('SESSION_OLD_BLOCK_KEY',
                          defaults.SESSION_OLD_BLOCK_KEY)
    app.config.setdefault('SESSION_MAX_LENGTH', defaults.SESSION_MAX_LENGTH)


def _as_key(value: Optional[Union[str, bytes]]) -> Optional[bytes]:
    if not value:
        return None
    if isinstance(value, str):
        return value.encode('utf-8')
    return value


def get_session_store(app: Optional[Flask] = None) -> SessionStore:
    """Build a :class:`SessionStore` from application config."""
    config = app.config if app is not None else current_app.config
    hash_key = _as_key(config.get('SESSION_HASH_KEY'))
    if hash_key is None:
        raise ConfigurationError('SESSION_HASH_KEY is not set')
    key_pairs = [hash_key, _as_key(config.get('SESSION_BLOCK_KEY'))]
    old_hash_key = _as_key(config.get('SESSION_OLD_HASH_KEY'))
    if old_hash_key is not None:
        key_pairs += [old_hash_key,
                      _as_key(config.get('SESSION_OLD_BLOCK_KEY'))]

    host = config.get('REDIS_HOST', 'localhost')
    port = int(config.get('REDIS_PORT', '6379'))
    db = int(config.get('REDIS_DATABASE', '0'))
    if str(config.get('REDIS_CLUSTER', '0')) == '1':
        logger.debug('New Redis cluster connection at %s, port %s', host, port)
        client = redis.RedisCluster(host=host, port=port)
    else:
        logger.debug('New Redis connection at %s, port %s', host, port)
        client = redis.StrictRedis(host=host, port=port, db=db)

    store = SessionStore(client, config.get('SESSION_KEY_PREFIX', ''),
                         *key_pairs)
    store.set_max_length(int(config.get('SESSION_MAX_LENGTH', '4096')))
    return store


def current_store() -> SessionStore:
    """Get/create the :class:`SessionStore` for the current application."""
    store: Optional[SessionStore] = current_app.extensions.get(EXTENSION_KEY)
    if store is None:
        store = get_session_store(current_app)
        current_app.extensions[EXTENSION_KEY] = store
    return store


def get(name: str) -> Session:
    """Get the named session for the current request."""
    return current_store().get(request, name)


def save(response: Any) -> None:
    """Save every session loaded during the current request to ``response``."""
    get_registry(request).save(response)
