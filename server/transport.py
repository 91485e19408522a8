"""
HTTP plumbing shared by the Okta and Duo exchanges.

Every response must be a success or a redirect; anything else is turned
into a TransportError here so the protocol code never has to check status
codes itself.
"""

import requests

from deadline import Deadline
from errors import TransportError

BROWSER_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36',
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.9',
    'Connection': 'keep-alive',
}

JSON_HEADERS = {
    'Content-Type': 'application/json',
    'Accept': 'application/json',
}

FORM_HEADERS = {
    'Content-Type': 'application/x-www-form-urlencoded',
}


def new_session(skip_verify=False):
    session = requests.Session()
    session.headers.update(BROWSER_HEADERS)
    if skip_verify:
        session.verify = False
    return session


def is_success_or_redirect(status_code):
    return 200 <= status_code < 400


class HttpClient:
    """
    Wraps one requests.Session for the duration of a single login attempt.

    The session keeps the Okta and Duo cookies between calls, so it must not
    be shared between two attempts.
    """

    def __init__(self, session, timeout=30, deadline=None):
        self.session = session
        self.timeout = timeout
        self.deadline = deadline or Deadline()

    def send(self, req: requests.Request, operation: str) -> requests.Response:
        """
        Issue a request, following HTTP redirects like a browser would.

        Args:
            req: request to send (method, url, params, data, json, headers)
            operation: short description used in error messages

        Raises:
            TransportError when the exchange fails or the status is >= 400
            LoginTimeoutError when the login deadline has passed
        """
        self.deadline.check(operation)

        try:
            resp = self.session.request(
                req.method,
                req.url,
                params=req.params or None,
                data=req.data or None,
                json=req.json,
                headers=req.headers or None,
                allow_redirects=True,
                timeout=self.deadline.timeout(self.timeout),
            )
        except requests.RequestException as e:
            raise TransportError(f'error {operation}: {e}') from e

        if not is_success_or_redirect(resp.status_code):
            raise TransportError(
                f'error {operation}: {req.method} {resp.url or req.url} returned {resp.status_code}',
                status_code=resp.status_code,
            )
        return resp

    def get(self, url, operation, **kwargs):
        return self.send(requests.Request('GET', url, **kwargs), operation)

    def post(self, url, operation, **kwargs):
        return self.send(requests.Request('POST', url, **kwargs), operation)

    def post_json(self, url, payload, operation, headers=None):
        return self.post(url, operation, json=payload, headers={**JSON_HEADERS, **(headers or {})})

    def post_form(self, url, fields, operation, params=None):
        return self.post(url, operation, data=fields, params=params, headers=dict(FORM_HEADERS))
