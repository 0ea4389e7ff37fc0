"""Tests for :mod:`cachestore.registry`."""

from unittest import TestCase, mock

from redis.exceptions import ConnectionError
from werkzeug.wrappers import Response

from .. import registry, store
from ..exceptions import SessionCreationFailed
from .util import cookie_value, make_request, mock_cache


class TestGetRegistry(TestCase):
    """Tests for :func:`registry.get_registry`."""

    def test_one_per_request(self):
        """The registry is attached to the request environ."""
        request = make_request()
        first = registry.get_registry(request)
        self.assertIs(registry.get_registry(request), first)
        self.assertIs(request.environ[registry.REGISTRY_KEY], first)
        self.assertIsNot(registry.get_registry(make_request()), first)


class TestRegistrySave(TestCase):
    """Tests for :meth:`registry.Registry.save`."""

    def setUp(self):
        """Create a store with a dict-backed cache."""
        self.client, self.data = mock_cache()
        self.store = store.SessionStore(self.client, 'sess_', b'h' * 32)

    def test_save_all(self):
        """Every session loaded during the request is saved."""
        request = make_request()
        self.store.get(request, 'first').values['n'] = 1
        self.store.get(request, 'second').values['n'] = 2
        response = Response()
        registry.get_registry(request).save(response)
        self.assertEqual(len(self.data), 2)
        self.assertIsNotNone(cookie_value(response, 'first'))
        self.assertIsNotNone(cookie_value(response, 'second'))

    def test_save_failed(self):
        """All sessions are attempted, and the first failure is raised."""
        request = make_request()
        self.store.get(request, 'first')
        self.store.get(request, 'second')
        self.client.set.side_effect = ConnectionError
        with self.assertRaises(SessionCreationFailed):
            registry.get_registry(request).save(Response())
        self.assertEqual(self.client.set.call_count, 2)

    def test_save_failed_load(self):
        """A session whose load failed can still be saved."""
        request = make_request({'sess': 'notatoken'})
        reg = registry.get_registry(request)
        with self.assertRaises(Exception):
            reg.get(self.store, 'sess')
        response = Response()
        reg.save(response)
        self.assertEqual(len(self.data), 1)
        self.assertIsNotNone(cookie_value(response, 'sess'))

    def test_new_called_once(self):
        """The store is asked for a named session only once."""
        mock_store = mock.MagicMock()
        reg = registry.Registry(make_request())
        self.assertIs(reg.get(mock_store, 'sess'), reg.get(mock_store, 'sess'))
        self.assertEqual(mock_store.new.call_count, 1)
