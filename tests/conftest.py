import json as jsonlib
from dataclasses import dataclass, field

import pytest
import requests

from config import IdpAccount, LoginDetails
from transport import HttpClient

OKTA_HOST = 'example.okta.com'
APP_URL = f'https://{OKTA_HOST}/home/amazon_aws/0oa1abcd/272'
CONSUMER_URL = 'https://signin.aws.amazon.com/saml'


def make_response(body='', status=200, url=None, json=None):
    resp = requests.Response()
    resp.status_code = status
    if json is not None:
        body = jsonlib.dumps(json)
    resp._content = body.encode('utf-8')
    resp.encoding = 'utf-8'
    resp.url = url
    return resp


@dataclass
class Call:
    method: str
    url: str
    kwargs: dict = field(default_factory=dict)

    @property
    def json(self):
        return self.kwargs.get('json')

    @property
    def data(self):
        return self.kwargs.get('data')

    @property
    def params(self):
        return self.kwargs.get('params')

    @property
    def headers(self):
        return self.kwargs.get('headers') or {}


class FakeSession:
    """Stands in for requests.Session, replaying scripted responses in order."""

    def __init__(self, responses=()):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append(Call(method, url, kwargs))
        if not self.responses:
            raise AssertionError(f'unexpected request: {method} {url}')
        resp = self.responses.pop(0)
        if isinstance(resp, Exception):
            raise resp
        if resp.url is None:
            resp.url = url
        return resp


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def saml_form(action, fields, method='post'):
    inputs = ''.join(
        f'<input type="hidden" name="{name}" value="{value}"/>' for name, value in fields.items()
    )
    return (
        '<html><body onload="document.forms[0].submit()">'
        f'<form method="{method}" action="{action}">{inputs}'
        '<input type="submit" value="Continue"/></form></body></html>'
    )


@pytest.fixture
def account():
    return IdpAccount(url=APP_URL, push_poll_interval=0, duo_poll_interval=0)


@pytest.fixture
def details():
    return LoginDetails(url=APP_URL, username='jdoe', password='hunter2')


@pytest.fixture
def make_http():
    def _make(responses, deadline=None):
        return HttpClient(FakeSession(responses), timeout=30, deadline=deadline)
    return _make
