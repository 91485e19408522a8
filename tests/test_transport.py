import pytest
import requests

from conftest import FakeClock, FakeSession, make_response
from deadline import Deadline
from errors import LoginTimeoutError, TransportError
from transport import BROWSER_HEADERS, HttpClient, new_session


def test_success_and_redirect_statuses_pass():
    session = FakeSession([make_response('ok', status=200), make_response('', status=302)])
    http = HttpClient(session)

    assert http.get('https://example.okta.com/a', 'fetching a').text == 'ok'
    assert http.get('https://example.okta.com/b', 'fetching b').status_code == 302


def test_error_status_raises_with_operation():
    http = HttpClient(FakeSession([make_response('denied', status=403)]))

    with pytest.raises(TransportError, match='error retrieving auth response') as exc:
        http.post_json('https://example.okta.com/api/v1/authn', {}, 'retrieving auth response')
    assert exc.value.status_code == 403


def test_connection_failure_is_wrapped():
    http = HttpClient(FakeSession([requests.ConnectionError('refused')]))

    with pytest.raises(TransportError, match='refused'):
        http.get('https://example.okta.com/', 'following')


def test_post_json_sends_json_headers():
    session = FakeSession([make_response(json={})])
    HttpClient(session).post_json('https://example.okta.com/verify', {'stateToken': 's'},
                                  'verifying', headers={'X-Okta-XsrfToken': ''})

    call = session.calls[0]
    assert call.json == {'stateToken': 's'}
    assert call.headers['Content-Type'] == 'application/json'
    assert call.headers['X-Okta-XsrfToken'] == ''
    assert call.kwargs['allow_redirects'] is True


def test_expired_deadline_skips_request():
    clock = FakeClock()
    deadline = Deadline(5, clock=clock, sleeper=clock.sleep)
    clock.now = 6
    session = FakeSession([make_response('never')])

    with pytest.raises(LoginTimeoutError):
        HttpClient(session, deadline=deadline).get('https://example.okta.com/', 'following')
    assert session.calls == []


def test_request_timeout_clipped_to_deadline():
    clock = FakeClock()
    deadline = Deadline(10, clock=clock, sleeper=clock.sleep)
    clock.now = 8
    session = FakeSession([make_response('ok')])

    HttpClient(session, timeout=30, deadline=deadline).get('https://example.okta.com/', 'following')
    assert session.calls[0].kwargs['timeout'] == 2


def test_new_session_applies_headers_and_verify():
    session = new_session(skip_verify=True)
    assert session.verify is False
    assert session.headers['User-Agent'] == BROWSER_HEADERS['User-Agent']
