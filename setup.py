"""Install the cache-backed session store."""

from setuptools import setup, find_packages

setup(
    name='cachestore',
    version='0.1.0',
    packages=find_packages(exclude=['*tests*']),
    install_requires=[
        "flask",
        "werkzeug",
        "redis>=4.1",
        "pyjwt>=2",
        "cryptography",
        "pytz",
        "python-json-logger",
    ],
    extras_require={
        "test": ["pytest"],
    },
    zip_safe=False
)
