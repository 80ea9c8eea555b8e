# locust monkey-patches ssl via gevent; it must be imported before anything else imports ssl
import locust  # noqa: F401

from collections import namedtuple

import pytest

from loadgen.config import LoadgenConfig

Call = namedtuple("Call", "method url data headers kwargs")


class FakeClient:
    """Records requests-style calls instead of sending them."""

    def __init__(self):
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append(Call("GET", url, None, None, kwargs))

    def post(self, url, data=None, headers=None, **kwargs):
        self.calls.append(Call("POST", url, data, headers, kwargs))

    def close(self):
        pass


@pytest.fixture
def client():
    return FakeClient()


@pytest.fixture
def cfg():
    return LoadgenConfig(base_url="http://shop.test")
