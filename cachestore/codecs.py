"""
Authenticated encoding for cookie values and cached session data.

A :class:`SecureCookie` serializes a value with Flask's tagged JSON, which
keeps tuples, bytes, UUIDs and datetimes intact. The result is optionally
encrypted with AES-GCM and signed as an HS256 JSON web token. The cookie
name is bound into the signed claims (and into the encryption as associated
data) so that a value issued for one cookie can't be replayed as another.

Several codecs can be used together to rotate keys: encode with the first,
decode with whichever one accepts the value.
"""

import os
import secrets
import time
from base64 import urlsafe_b64encode, urlsafe_b64decode
from typing import Any, List, Optional, Sequence

import jwt
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from flask.json.tag import TaggedJSONSerializer

from .exceptions import CodecError, ConfigurationError, DecodeError, \
    EncodeError

import logging

logger = logging.getLogger(__name__)

ALGORITHM = 'HS256'
DEFAULT_MAX_LENGTH = 4096
DEFAULT_MAX_AGE = 86400 * 30
NONCE_SIZE = 12

serializer = TaggedJSONSerializer()


def generate_random_key(length: int) -> bytes:
    """Generate a random key suitable for signing or encryption."""
    return secrets.token_bytes(length)


class Codec(object):
    """Encodes and decodes values with a guarantee of authenticity."""

    def encode(self, name: str, value: Any) -> str:
        """Encode ``value`` for use under ``name``."""
        raise NotImplementedError('Must be implemented by a subclass')

    def decode(self, name: str, value: str) -> Any:
        """Decode and authenticate ``value`` that was issued for ``name``."""
        raise NotImplementedError('Must be implemented by a subclass')


class SecureCookie(Codec):
    """
    Signs, and optionally encrypts, values Flask can serialize.

    Parameters
    ----------
    hash_key : bytes
        Secret used to sign values with HMAC-SHA256. Required.
    block_key : bytes
        Optional AES key (16, 24, or 32 bytes). If set, values are encrypted
        before they are signed.

    """

    def __init__(self, hash_key: bytes,
                 block_key: Optional[bytes] = None) -> None:
        if not hash_key:
            raise ConfigurationError('Hash key is not set')
        self._hash_key = hash_key
        self._aead: Optional[AESGCM] = None
        if block_key:
            try:
                self._aead = AESGCM(block_key)
            except ValueError as e:
                raise ConfigurationError(f'Invalid block key: {e}') from e
        self._max_length = DEFAULT_MAX_LENGTH
        self._max_age = DEFAULT_MAX_AGE

    def max_length(self, length: int) -> 'SecureCookie':
        """
        Restrict the length of encoded values. Zero means no limit.

        The default is 4096, the size most browsers accept for a cookie.
        """
        self._max_length = length
        return self

    def max_age(self, age: int) -> 'SecureCookie':
        """Reject values issued more than ``age`` seconds ago. Zero disables."""
        self._max_age = age
        return self

    def encode(self, name: str, value: Any) -> str:
        """
        Encode ``value`` as a signed token bound to ``name``.

        Raises
        ------
        :class:`EncodeError`
            Raised if the value can't be serialized or the token exceeds the
            maximum length.

        """
        try:
            data = serializer.dumps(value).encode('utf-8')
        except (TypeError, ValueError) as e:
            raise EncodeError(f'Could not serialize value: {e}') from e

        if self._aead is not None:
            nonce = os.urandom(NONCE_SIZE)
            data = nonce + self._aead.encrypt(nonce, data,
                                              name.encode('utf-8'))

        claims = {
            'n': name,
            'v': urlsafe_b64encode(data).decode('ascii'),
            'iat': int(time.time())
        }
        token: str = jwt.encode(claims, self._hash_key, algorithm=ALGORITHM)
        if self._max_length and len(token) > self._max_length:
            raise EncodeError('The value is too long')
        return token

    def decode(self, name: str, value: str) -> Any:
        """
        Verify and decode a token produced by :meth:`encode`.

        Raises
        ------
        :class:`DecodeError`
            Raised if the token is too long, malformed, forged, issued for a
            different name, expired, or can't be decrypted.

        """
        if self._max_length and len(value) > self._max_length:
            raise DecodeError('The value is too long')
        try:
            claims = jwt.decode(value, self._hash_key, algorithms=[ALGORITHM])
        except jwt.exceptions.InvalidTokenError as e:
            raise DecodeError(f'Invalid token: {e}') from e

        try:
            issued_for = claims['n']
            payload = claims['v']
            issued_at = claims['iat']
        except KeyError as e:
            raise DecodeError('Token payload malformed') from e
        if issued_for != name:
            raise DecodeError('Token was issued for another name')
        if self._max_age and issued_at < time.time() - self._max_age:
            raise DecodeError('Token has expired')

        try:
            data = urlsafe_b64decode(payload.encode('ascii'))
        except (AttributeError, ValueError) as e:
            raise DecodeError('Token payload malformed') from e

        if self._aead is not None:
            if len(data) < NONCE_SIZE:
                raise DecodeError('Encrypted value is too short')
            try:
                data = self._aead.decrypt(data[:NONCE_SIZE],
                                          data[NONCE_SIZE:],
                                          name.encode('utf-8'))
            except (InvalidTag, ValueError) as e:
                raise DecodeError('Could not decrypt value') from e

        try:
            return serializer.loads(data.decode('utf-8'))
        except (TypeError, ValueError) as e:
            raise DecodeError(f'Could not deserialize value: {e}') from e


def codecs_from_pairs(*key_pairs: Optional[bytes]) -> List[Codec]:
    """
    Build one :class:`SecureCookie` per (hash key, block key) pair.

    Keys are passed flat: ``hash_key1, block_key1, hash_key2, block_key2...``.
    A block key may be ``None`` or omitted from the last pair.
    """
    codecs: List[Codec] = []
    for i in range(0, len(key_pairs), 2):
        hash_key = key_pairs[i]
        block_key = key_pairs[i + 1] if i + 1 < len(key_pairs) else None
        codecs.append(SecureCookie(hash_key, block_key))     # type: ignore
    return codecs


def encode_multi(name: str, value: Any, *codecs: Codec) -> str:
    """Encode ``value`` with the first codec that accepts it."""
    if not codecs:
        raise CodecError('No codecs were provided')
    errors: List[CodecError] = []
    for codec in codecs:
        try:
            return codec.encode(name, value)
        except EncodeError as e:
            errors.append(e)
    raise EncodeError(_join(errors))


def decode_multi(name: str, value: str, *codecs: Codec) -> Any:
    """
    Decode ``value`` with the first codec that accepts it.

    Codecs are tried in order, so the newest key should come first.
    """
    if not codecs:
        raise CodecError('No codecs were provided')
    errors: List[CodecError] = []
    for codec in codecs:
        try:
            return codec.decode(name, value)
        except DecodeError as e:
            logger.debug('Codec rejected %s: %s', name, e)
            errors.append(e)
    raise DecodeError(_join(errors))


def _join(errors: Sequence[Exception]) -> str:
    return '; '.join(str(e) for e in errors)
