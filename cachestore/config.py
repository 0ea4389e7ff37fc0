"""Default configuration for the session store, read from the environment."""

import os

REDIS_HOST = os.environ.get('REDIS_HOST', 'localhost')
REDIS_PORT = os.environ.get('REDIS_PORT', '6379')
REDIS_DATABASE = os.environ.get('REDIS_DATABASE', '0')
REDIS_CLUSTER = os.environ.get('REDIS_CLUSTER', '0')

SESSION_KEY_PREFIX = os.environ.get('SESSION_KEY_PREFIX', 'session_')
SESSION_HASH_KEY = os.environ.get('SESSION_HASH_KEY')
SESSION_BLOCK_KEY = os.environ.get('SESSION_BLOCK_KEY')

# Previous keys, accepted for decoding only while cookies are rotated.
SESSION_OLD_HASH_KEY = os.environ.get('SESSION_OLD_HASH_KEY')
SESSION_OLD_BLOCK_KEY = os.environ.get('SESSION_OLD_BLOCK_KEY')

SESSION_MAX_LENGTH = os.environ.get('SESSION_MAX_LENGTH', '4096')

LOGLEVEL = os.environ.get('LOGLEVEL', 20)
