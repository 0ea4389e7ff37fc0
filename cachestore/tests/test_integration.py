"""Integration tests for the session store with Redis."""

from unittest import TestCase
import os

import redis
from werkzeug.wrappers import Response

from .. import store
from ..exceptions import UnknownSession
from .util import cookie_value, make_request


class TestRedisIntegration(TestCase):
    """Test integration with a live Redis at ``REDIS_HOST:REDIS_PORT``."""

    __test__ = int(bool(os.environ.get('WITH_INTEGRATION', False)))

    @classmethod
    def setUpClass(cls):
        """Connect to Redis."""
        cls.redis = redis.StrictRedis(
            host=os.environ.get('REDIS_HOST', 'localhost'),
            port=int(os.environ.get('REDIS_PORT', '6379')),
            db=0
        )
        cls.store = store.SessionStore(cls.redis, 'sess_test_', b'h' * 32,
                                       b'b' * 32)

    def test_round_trip(self):
        """An entry is created in Redis and read back."""
        session = self.store.new(make_request(), 'sess')
        session.values['user'] = 'alice'
        response = Response()
        self.store.save(make_request(), response, session)
        self.assertIsNotNone(self.redis.get(f'sess_test_{session.id}'))

        cookies = {'sess': cookie_value(response, 'sess')}
        restored = self.store.new(make_request(cookies), 'sess')
        self.assertEqual(restored.values, {'user': 'alice'})

        self.redis.delete(f'sess_test_{session.id}')
        with self.assertRaises(UnknownSession):
            self.store.new(make_request(cookies), 'sess')
