"""Helpers for session store tests."""

from typing import Dict, Optional, Tuple
from unittest import mock

from werkzeug.test import EnvironBuilder
from werkzeug.wrappers import Request


def mock_cache() -> Tuple[mock.MagicMock, Dict[str, bytes]]:
    """Get a mock cache client backed by a dict."""
    data: Dict[str, bytes] = {}
    client = mock.MagicMock()
    client.get.side_effect = data.get
    client.set.side_effect = lambda key, value: data.__setitem__(key, value)
    client.delete.side_effect = lambda key: data.pop(key, None)
    return client, data


def make_request(cookies: Optional[Dict[str, str]] = None) -> Request:
    """Build a request carrying ``cookies``."""
    headers = {}
    if cookies:
        headers['Cookie'] = '; '.join(f'{name}={value}'
                                      for name, value in cookies.items())
    return EnvironBuilder(path='/', headers=headers).get_request()


def set_cookie_header(response, name: str) -> Optional[str]:
    """Get the ``Set-Cookie`` header for ``name`` from a response."""
    for header in response.headers.getlist('Set-Cookie'):
        if header.partition('=')[0] == name:
            return header
    return None


def cookie_value(response, name: str) -> Optional[str]:
    """Get the value set for cookie ``name`` on a response."""
    header = set_cookie_header(response, name)
    if header is None:
        return None
    return header.partition('=')[2].split(';', 1)[0]
