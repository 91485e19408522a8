"""
Account and login settings, read from environment variables.

    OKTA_URL             Okta app login URL (required)
    OKTA_USERNAME        Okta username
    OKTA_PASSWORD        Okta password
    OKTA_MFA             factor preference, e.g. "SMS" or "DUO"; AUTO prompts
    OKTA_DUO_MFA_OPTION  "Duo Push" or "Passcode" to skip the Duo prompt
    OKTA_SKIP_VERIFY     disable TLS certificate verification
    OKTA_CONSUMER_URL    SAML endpoint of the relying party
    OKTA_HTTP_TIMEOUT    per-request timeout (seconds)
    OKTA_LOGIN_TIMEOUT   deadline for the whole login (seconds)
    OKTA_MAX_HOPS        cap on auto-submit form hops
    OKTA_LOGIN_DEBUG     print debug output
"""

import math
import os
from dataclasses import dataclass
from typing import Optional

from errors import ConfigError

AWS_SAML_CONSUMER_URL = 'https://signin.aws.amazon.com/saml'

DUO_PUSH = 'Duo Push'
DUO_PASSCODE = 'Passcode'

_TRUTHY = ('1', 'true', 'yes', 'on')

DEBUG = os.environ.get('OKTA_LOGIN_DEBUG', '').lower() in _TRUTHY


@dataclass(frozen=True)
class IdpAccount:
    url: str
    mfa: str = 'AUTO'
    skip_verify: bool = False
    consumer_url: str = AWS_SAML_CONSUMER_URL
    http_timeout: float = 30
    push_poll_interval: float = 1
    duo_poll_interval: float = 3
    login_timeout: Optional[float] = None
    max_hops: int = 20
    max_restarts: int = 3


@dataclass(frozen=True)
class LoginDetails:
    url: str
    username: str = ''
    password: str = ''
    state_token: Optional[str] = None
    duo_mfa_option: Optional[str] = None


def _float(environ, name, default):
    raw = environ.get(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f'{name} must be a number, got {raw!r}')
    if not math.isfinite(value):
        raise ConfigError(f'{name} must be a finite number, got {raw!r}')
    return value


def _int(environ, name, default):
    raw = environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f'{name} must be a whole number, got {raw!r}')


def load_account(environ=None) -> IdpAccount:
    environ = os.environ if environ is None else environ

    url = environ.get('OKTA_URL', '')
    if not url:
        raise ConfigError('OKTA_URL env var must be set')

    return IdpAccount(
        url=url,
        mfa=environ.get('OKTA_MFA') or 'AUTO',
        skip_verify=environ.get('OKTA_SKIP_VERIFY', '').lower() in _TRUTHY,
        consumer_url=environ.get('OKTA_CONSUMER_URL') or AWS_SAML_CONSUMER_URL,
        http_timeout=_float(environ, 'OKTA_HTTP_TIMEOUT', 30),
        login_timeout=_float(environ, 'OKTA_LOGIN_TIMEOUT', None),
        max_hops=_int(environ, 'OKTA_MAX_HOPS', 20),
    )


def load_login_details(environ=None) -> LoginDetails:
    environ = os.environ if environ is None else environ

    username = environ.get('OKTA_USERNAME', '')
    password = environ.get('OKTA_PASSWORD', '')
    if not username or not password:
        raise ConfigError('OKTA_USERNAME and OKTA_PASSWORD env vars must be set')

    duo_option = environ.get('OKTA_DUO_MFA_OPTION') or None
    if duo_option not in (None, DUO_PUSH, DUO_PASSCODE):
        raise ConfigError(
            f'OKTA_DUO_MFA_OPTION must be "{DUO_PUSH}" or "{DUO_PASSCODE}", got {duo_option!r}')

    return LoginDetails(
        url=load_account(environ).url,
        username=username,
        password=password,
        duo_mfa_option=duo_option,
    )
