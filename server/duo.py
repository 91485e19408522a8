"""
Duo Web (iframe / v2 frame API) handshake behind an Okta "DUO WEB" factor.

Rounds, each feeding the next:
  1. POST /frame/web/v1/auth?tx=TX   -> sid (scraped from the HTML)
  2. POST /frame/prompt               -> txid (push or passcode)
  3. POST /frame/status               -> result + result_url (poll until SUCCESS)
  4. POST result_url                  -> signed cookie
  5. POST cookie:APP to Okta's callback, then re-verify for the session token
"""

import html
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from config import DUO_PASSCODE, DUO_PUSH
from errors import ExtractionError, MfaError, MfaRejectedError

DUO_OPTIONS = [DUO_PUSH, DUO_PASSCODE]

# Screen metrics reported in the auth frame fingerprint form
SCREEN_WIDTH = '3008'
SCREEN_HEIGHT = '1692'
COLOR_DEPTH = '24'


def log(msg):
    print(f'[{datetime.now()}] [duo] {msg}', file=sys.stderr, flush=True)


@dataclass
class DuoChallenge:
    host: str
    tx_signature: str
    app_signature: str
    callback_url: str
    sid: Optional[str] = None
    txid: Optional[str] = None
    result_url: Optional[str] = None
    cookie: Optional[str] = None

    def url(self, path):
        return f'https://{self.host}{path}'


def _json(resp, operation):
    try:
        return resp.json()
    except ValueError as e:
        raise ExtractionError(f'error {operation}: Duo returned non-JSON') from e


def parse_challenge(verify_payload):
    """Read host, TX:APP signature and callback link out of Okta's verify response."""
    factor = (verify_payload.get('_embedded') or {}).get('factor') or {}
    verification = (factor.get('_embedded') or {}).get('verification') or {}

    host = verification.get('host')
    signature = verification.get('signature') or ''
    callback = ((verification.get('_links') or {}).get('complete') or {}).get('href')

    if not host or not callback:
        raise ExtractionError('Duo verification is missing host or callback link')

    parts = signature.split(':')
    if len(parts) != 2 or not all(parts):
        raise ExtractionError('Could not parse TX/APP from Duo signature')

    log(f'Duo host: {host}')
    return DuoChallenge(host=host, tx_signature=parts[0], app_signature=parts[1],
                        callback_url=callback)


def start_session(http, challenge, okta_host):
    """Post the browser fingerprint form and scrape the Duo session id."""
    resp = http.post_form(
        challenge.url('/frame/web/v1/auth'),
        {
            'parent': f'https://{okta_host}/signin/verify/duo/web',
            'java_version': '',
            'flash_version': '',
            'screen_resolution_width': SCREEN_WIDTH,
            'screen_resolution_height': SCREEN_HEIGHT,
            'color_depth': COLOR_DEPTH,
        },
        'initiating Duo session',
        params={'tx': challenge.tx_signature},
    )

    soup = BeautifulSoup(resp.text, 'html.parser')
    sid_input = soup.find('input', attrs={'name': 'sid'})
    if sid_input is None or not sid_input.get('value'):
        raise ExtractionError('Failed to get Duo session ID (sid)')

    challenge.sid = html.unescape(sid_input['value'])
    log(f'Duo session ID: {challenge.sid[:20]}...')


def choose_method(details, prompter):
    if details.duo_mfa_option in DUO_OPTIONS:
        method = details.duo_mfa_option
    else:
        method = DUO_OPTIONS[prompter.choose('Select a DUO MFA Option', DUO_OPTIONS)]

    passcode = None
    if method == DUO_PASSCODE:
        passcode = prompter.string_required('Enter passcode')
    return method, passcode


def send_prompt(http, challenge, method, passcode=None):
    form = {
        'sid': challenge.sid,
        'device': 'phone1',
        'factor': method,
        'out_of_date': 'false',
    }
    if passcode is not None:
        form['passcode'] = passcode

    result = _json(http.post_form(challenge.url('/frame/prompt'), form, 'sending Duo prompt'),
                   'sending Duo prompt')
    if result.get('stat') != 'OK':
        raise MfaError(f'error authenticating mfa device: stat={result.get("stat")!r} '
                       f'message={result.get("message", "")!r}')

    txid = (result.get('response') or {}).get('txid')
    if not txid:
        raise ExtractionError('Duo prompt response is missing txid')
    challenge.txid = txid
    log(f'Duo transaction ID: {txid}')


def _status(http, challenge):
    result = _json(http.post_form(challenge.url('/frame/status'),
                                  {'sid': challenge.sid, 'txid': challenge.txid},
                                  'checking Duo status'),
                   'checking Duo status')
    response = result.get('response') or {}
    if response.get('status'):
        log(f'Duo status: {response["status"]}')
    return response.get('result'), response.get('result_url')


def wait_for_approval(http, challenge, interval):
    """
    Ask /frame/status for the transaction result, polling while the push is
    pending. Only the login deadline bounds the wait.
    """
    result, challenge.result_url = _status(http, challenge)

    while result != 'SUCCESS':
        if result == 'FAILURE':
            raise MfaRejectedError('failed to authenticate device')
        http.deadline.sleep(interval, 'waiting for Duo approval')
        result, result_url = _status(http, challenge)
        if result_url:
            challenge.result_url = result_url

    if not challenge.result_url:
        raise ExtractionError('No result_url in Duo status response')
    log('Duo approved')


def fetch_cookie(http, challenge):
    result = _json(http.post_form(challenge.url(challenge.result_url),
                                  {'sid': challenge.sid, 'txid': challenge.txid},
                                  'retrieving Duo result'),
                   'retrieving Duo result')
    cookie = (result.get('response') or {}).get('cookie')
    if not cookie:
        raise ExtractionError('Unable to get response.cookie from Duo result')
    challenge.cookie = cookie


def complete(http, challenge, factor, state_token):
    """Hand the signed Duo response to Okta, then re-verify for a session token."""
    http.post_form(
        challenge.callback_url,
        {
            'id': factor.id,
            'stateToken': state_token,
            'sig_response': f'{challenge.cookie}:{challenge.app_signature}',
        },
        'posting Duo response to Okta',
    )

    resp = http.post_json(factor.verify_url, {'stateToken': state_token},
                          'retrieving verify response', headers={'X-Okta-XsrfToken': ''})
    session_token = _json(resp, 'retrieving verify response').get('sessionToken')
    if not session_token:
        raise ExtractionError('No sessionToken after Duo verification')
    return session_token


def verify_duo(http, account, details, factor, state_token, verify_payload, prompter):
    challenge = parse_challenge(verify_payload)
    start_session(http, challenge, urlparse(details.url).netloc)

    method, passcode = choose_method(details, prompter)
    send_prompt(http, challenge, method, passcode)
    if method == DUO_PUSH:
        log('Waiting for Duo push approval (check your phone)...')

    wait_for_approval(http, challenge, account.duo_poll_interval)
    fetch_cookie(http, challenge)
    return complete(http, challenge, factor, state_token)
