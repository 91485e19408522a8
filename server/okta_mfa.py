"""
Okta MFA verification.

Given the MFA_REQUIRED answer from /api/v1/authn:
  1. List the enrolled factors and pick one (preference, then prompt)
  2. POST the state token to the factor's verify link to start the challenge
  3. Finish the challenge: passcode, Okta Verify push, or Duo Web
  4. Return the Okta session token
"""

import sys
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional

import duo
from config import DEBUG
from errors import (
    ExtractionError,
    MfaRejectedError,
    MfaTimeoutError,
    UnexpectedResponseError,
    UnsupportedFactorError,
)


def log(msg):
    print(f'[{datetime.now()}] [okta_mfa] {msg}', file=sys.stderr, flush=True)


def debug(msg):
    if DEBUG:
        log(msg)


class FactorKind(Enum):
    DUO_WEB = 'DUO WEB'
    OKTA_SMS = 'OKTA SMS'
    OKTA_PUSH = 'OKTA PUSH'
    GOOGLE_TOTP = 'GOOGLE TOKEN:SOFTWARE:TOTP'
    OKTA_TOTP = 'OKTA TOKEN:SOFTWARE:TOTP'
    SYMANTEC_TOTP = 'SYMANTEC TOKEN'


SUPPORTED_FACTORS = {
    FactorKind.DUO_WEB: 'DUO MFA authentication',
    FactorKind.OKTA_SMS: 'SMS MFA authentication',
    FactorKind.OKTA_PUSH: 'PUSH MFA authentication',
    FactorKind.GOOGLE_TOTP: 'TOTP MFA authentication',
    FactorKind.OKTA_TOTP: 'Okta MFA authentication',
    FactorKind.SYMANTEC_TOTP: 'Symantec VIP MFA authentication',
}

PASSCODE_FACTORS = (
    FactorKind.OKTA_SMS,
    FactorKind.GOOGLE_TOTP,
    FactorKind.OKTA_TOTP,
    FactorKind.SYMANTEC_TOTP,
)


@dataclass(frozen=True)
class Factor:
    provider: str
    factor_type: str
    id: str
    verify_url: str
    kind: Optional[FactorKind] = None

    @property
    def identifier(self):
        return f'{self.provider} {self.factor_type.upper()}'

    @property
    def label(self):
        if self.kind is None:
            return f'UNSUPPORTED: {self.identifier}'
        return SUPPORTED_FACTORS[self.kind]


def _kind_for(identifier):
    try:
        return FactorKind(identifier)
    except ValueError:
        return None


def parse_factors(payload) -> List[Factor]:
    factors = []
    for raw in (payload.get('_embedded') or {}).get('factors') or []:
        provider = raw.get('provider') or ''
        factor_type = raw.get('factorType') or ''
        factors.append(Factor(
            provider=provider,
            factor_type=factor_type,
            id=raw.get('id') or '',
            verify_url=((raw.get('_links') or {}).get('verify') or {}).get('href') or '',
            kind=_kind_for(f'{provider} {factor_type.upper()}'),
        ))
    return factors


def select_factor(factors, preference, prompter):
    """
    Pick the factor to verify.

    With a preference other than AUTO the first factor whose label starts
    with it wins; if none match every factor stays on the table. The user
    is only asked when more than one remains.
    """
    candidates = list(factors)

    if preference != 'AUTO':
        for factor in factors:
            if factor.label.startswith(preference):
                candidates = [factor]
                break

    if len(candidates) > 1:
        choice = prompter.choose('Select which MFA option to use', [f.label for f in candidates])
        selected = candidates[choice]
    else:
        selected = candidates[0]

    if selected.kind is None:
        raise UnsupportedFactorError(f'unsupported mfa provider: {selected.identifier}')
    return selected


def _json(resp, operation):
    try:
        return resp.json()
    except ValueError as e:
        raise ExtractionError(f'error {operation}: response is not JSON') from e


def verify_mfa(http, account, details, payload, prompter):
    """
    Complete the MFA challenge for an MFA_REQUIRED authn response.

    Returns:
        Okta session token
    """
    state_token = payload.get('stateToken')
    if not state_token:
        raise ExtractionError('MFA_REQUIRED response is missing stateToken')

    factors = parse_factors(payload)
    if not factors:
        raise ExtractionError('no mfa options provided')

    factor = select_factor(factors, account.mfa, prompter)
    log(f'Using MFA factor: {factor.label}')
    debug(f'factor id={factor.id} verify={factor.verify_url} identifier={factor.identifier}')

    # Kick off the challenge; for Duo this also hands back the signature + callback
    resp = http.post_json(factor.verify_url, {'stateToken': state_token},
                          'retrieving verify response')
    challenge = _json(resp, 'retrieving verify response')

    if factor.kind in PASSCODE_FACTORS:
        return verify_passcode(http, factor, state_token, prompter)
    if factor.kind is FactorKind.OKTA_PUSH:
        return poll_push(http, factor, state_token, account.push_poll_interval)
    if factor.kind is FactorKind.DUO_WEB:
        return duo.verify_duo(http, account, details, factor, state_token, challenge, prompter)

    raise UnsupportedFactorError(f'unsupported mfa provider: {factor.identifier}')


def verify_passcode(http, factor, state_token, prompter):
    code = prompter.string_required('Enter verification code')

    resp = http.post_json(factor.verify_url, {'stateToken': state_token, 'passCode': code},
                          'retrieving token post response')
    result = _json(resp, 'retrieving token post response')

    session_token = result.get('sessionToken')
    if not session_token:
        verdict = result.get('errorSummary') or result.get('status') or 'no session token'
        raise MfaRejectedError(f'verification code was not accepted: {verdict}')
    return session_token


def poll_push(http, factor, state_token, interval):
    """Poll the verify link until Okta Verify reports an answer."""
    log('Waiting for approval, please check your Okta Verify app...')

    while True:
        resp = http.post_json(factor.verify_url, {'stateToken': state_token},
                              'polling push verification')
        result = _json(resp, 'polling push verification')

        if result.get('status') == 'SUCCESS':
            log('Push approved')
            session_token = result.get('sessionToken')
            if not session_token:
                raise ExtractionError('push approved but no sessionToken in response')
            return session_token

        factor_result = result.get('factorResult')
        if factor_result == 'WAITING':
            debug('Waiting for user to authorize login')
            http.deadline.sleep(interval, 'waiting for push approval')
        elif factor_result == 'TIMEOUT':
            raise MfaTimeoutError('User did not accept MFA in time')
        elif factor_result == 'REJECTED':
            raise MfaRejectedError('MFA rejected by user')
        else:
            raise UnexpectedResponseError(
                f'Unsupported response from Okta: factorResult={factor_result!r}')
