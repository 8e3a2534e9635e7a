import json
from unittest.mock import MagicMock

import pytest
import requests

from schoolnet.client import SchoolnetClient
from schoolnet.retry import RetryPolicy

CONFIG = {
    "clientId": "client-abc",
    "clientSecret": "s3cret",
    "baseUrl": "https://district.example.com/some/path",
}


def make_response(body=None, status=200, url="https://district.example.com/api/v1/"):
    r = requests.Response()
    r.status_code = status
    r.reason = "OK" if status < 400 else "Error"
    r.url = url
    if body is None:
        r._content = b""
    elif isinstance(body, (bytes, str)):
        r._content = body.encode() if isinstance(body, str) else body
    else:
        r._content = json.dumps(body).encode()
    return r


def token_response(token="tok-1", expires_in=3600):
    return make_response({"access_token": token, "expires_in": expires_in})


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def session():
    s = MagicMock()
    s.post.return_value = token_response()
    return s


@pytest.fixture
def client(session, sleeps):
    return SchoolnetClient(CONFIG, session=session, retry=RetryPolicy(sleep=sleeps.append))
