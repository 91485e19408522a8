"""
Okta SSO + MFA login flow via HTTP requests, no browser.

Performs the full login chain:
  1. POST credentials (or a state token) to /api/v1/authn
  2. Complete MFA if Okta asks for it (see okta_mfa / duo)
  3. Trade the session token at /login/sessionCookieRedirect
  4. Submit the auto-submit SAML forms until the page posting the
     assertion to the relying party shows up
  5. Return the base64 SAML response
"""

import sys
from dataclasses import dataclass, replace
from datetime import datetime
from urllib.parse import urlparse

import requests

import documents
from config import DEBUG, IdpAccount, LoginDetails, load_account, load_login_details
from deadline import Deadline
from documents import DocumentKind
from errors import ExtractionError, LoginError, TooManyRedirectsError, UnknownDocumentError
from okta_mfa import verify_mfa
from prompter import ConsolePrompter
from transport import HttpClient, new_session


def log(msg):
    print(f'[{datetime.now()}] [okta_login] {msg}', file=sys.stderr, flush=True)


def debug(msg):
    if DEBUG:
        log(msg)


@dataclass(frozen=True)
class Assertion:
    saml_response: str


@dataclass(frozen=True)
class Restart:
    """The relying party wants the login flow re-entered with this state token."""
    state_token: str


class OktaClient:
    """
    Logs into Okta and returns a SAML response for the configured app.

    Each call to authenticate() uses its own requests.Session, so one client
    can be reused for several independent logins.
    """

    def __init__(self, account: IdpAccount, prompter=None, session_factory=None):
        self.account = account
        self.prompter = prompter or ConsolePrompter()
        self.session_factory = session_factory or (lambda: new_session(account.skip_verify))

    def authenticate(self, details: LoginDetails) -> str:
        http = HttpClient(
            self.session_factory(),
            timeout=self.account.http_timeout,
            deadline=Deadline(self.account.login_timeout),
        )

        for attempt in range(self.account.max_restarts + 1):
            if attempt:
                log(f'Re-entering login flow with state token (attempt {attempt + 1})')

            session_token = self.primary_auth(http, details)
            outcome = self.follow(http, self.session_redirect_request(details, session_token), details)

            if isinstance(outcome, Assertion):
                log('SAML assertion obtained')
                return outcome.saml_response

            details = replace(details, state_token=outcome.state_token)

        raise LoginError(f'login flow restarted more than {self.account.max_restarts} times')

    def primary_auth(self, http, details):
        """Submit credentials to /api/v1/authn and return an Okta session token."""
        okta_host = urlparse(details.url).netloc

        if details.state_token:
            auth_req = {'stateToken': details.state_token}
        else:
            auth_req = {'username': details.username, 'password': details.password}

        # ── Phase 1: primary authentication ──
        log(f'Phase 1: Authenticating against {okta_host}...')
        resp = http.post_json(f'https://{okta_host}/api/v1/authn', auth_req,
                              'retrieving auth response')
        try:
            result = resp.json()
        except ValueError as e:
            raise ExtractionError('error retrieving body from auth response: not JSON') from e

        status = result.get('status')
        log(f'Authentication status: {status}')

        # ── Phase 2: MFA ──
        if status == 'MFA_REQUIRED':
            log('Phase 2: MFA required...')
            return verify_mfa(http, self.account, details, result, self.prompter)

        session_token = result.get('sessionToken')
        if not session_token:
            raise LoginError(f'authentication did not complete (status={status})')
        return session_token

    def session_redirect_request(self, details, session_token):
        okta_host = urlparse(details.url).netloc
        debug(f'Session token: {session_token[:6]}...')
        return requests.Request(
            'GET',
            f'https://{okta_host}/login/sessionCookieRedirect',
            params={
                'checkAccountSetupComplete': 'true',
                'token': session_token,
                'redirectUrl': details.url,
            },
        )

    def follow(self, http, req, details):
        """
        Replay the auto-submit form chain until the assertion page shows up.

        Returns Assertion when the consumer form carries a SAMLResponse, or
        Restart when the app sent us back to the Okta sign-in page.
        """
        # ── Phase 3: follow the SAML form chain ──
        for hop in range(self.account.max_hops):
            resp = http.send(req, 'following')
            soup = documents.parse(resp.text)
            kind = documents.classify(soup, self.account.consumer_url)
            debug(f'Hop {hop}: {resp.url} -> {kind.value}')

            if kind is DocumentKind.ASSERTION_REDIRECT:
                return self.handle_assertion_page(http, soup, details)

            if kind is DocumentKind.UNKNOWN:
                debug(f'Unknown document type: {resp.text}')
                raise UnknownDocumentError(document=resp.text)

            form = documents.extract_form(soup, resp.url)
            log(f'Submitting {kind.value} form -> {form.action}')
            req = form.to_request()

        raise TooManyRedirectsError(f'gave up after {self.account.max_hops} form redirects')

    def handle_assertion_page(self, http, soup, details):
        saml_response = documents.extract_saml_response(soup)
        if saml_response is not None:
            decoded = documents.decode_saml_response(saml_response)
            debug(f'SAML response: {decoded.decode("utf-8", errors="replace")}')
            return Assertion(saml_response)

        # No assertion yet: the app wants a fresh pass through the sign-in page
        log('No SAMLResponse on consumer form, fetching state token from app page...')
        resp = http.get(details.url, 'retrieving app response')
        return Restart(documents.state_token_from_page(resp.text))


def main(environ=None):
    try:
        account = load_account(environ)
        details = load_login_details(environ)
        saml_response = OktaClient(account).authenticate(details)
    except LoginError as e:
        log(f'Login failed: {e}')
        return 1

    print(saml_response)
    return 0


if __name__ == '__main__':
    sys.exit(main())
