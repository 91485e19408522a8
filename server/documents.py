"""
Recognising the auto-submit pages Okta and the relying party send back.

A browser would run the onload handler and submit these forms itself; we
classify each page instead and submit the form by hand.
"""

import base64
import binascii
import re
from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from errors import AssertionDecodeError, ExtractionError

STATE_TOKEN_RE = re.compile(r"var stateToken = '(.*)';")


class DocumentKind(Enum):
    ASSERTION_REDIRECT = 'saml-response-to-consumer'
    SAML_REQUEST = 'saml-request'
    RESUME = 'resume'
    SAML_RESPONSE = 'saml-response'
    UNKNOWN = 'unknown'


@dataclass
class AutoSubmitForm:
    action: str
    method: str = 'POST'
    fields: dict = field(default_factory=dict)

    def to_request(self):
        if self.method == 'GET':
            return requests.Request('GET', self.action, params=self.fields)
        return requests.Request(self.method, self.action, data=self.fields)


def parse(html):
    return BeautifulSoup(html, 'html.parser')


def _single_input(soup, name):
    return len(soup.find_all('input', attrs={'name': name})) == 1


def classify(soup, consumer_url):
    """
    Work out what kind of page this is. Order matters: the page posting the
    assertion to the consumer also carries a SAMLResponse input, and IdP
    initiated pages carry both SAMLResponse and RelayState.
    """
    if len(soup.find_all('form', attrs={'action': consumer_url})) == 1:
        return DocumentKind.ASSERTION_REDIRECT
    if _single_input(soup, 'SAMLRequest'):
        return DocumentKind.SAML_REQUEST
    if _single_input(soup, 'RelayState'):
        return DocumentKind.RESUME
    if _single_input(soup, 'SAMLResponse'):
        return DocumentKind.SAML_RESPONSE
    return DocumentKind.UNKNOWN


def extract_form(soup, page_url):
    """Pull the first form out of the page, with its action made absolute."""
    form = soup.find('form')
    if not form:
        raise ExtractionError('error extracting redirect form: no form in document')

    action = form.get('action', '')
    action = urljoin(page_url, action) if action else page_url

    fields = {}
    for inp in form.find_all('input'):
        name = inp.get('name')
        if name:
            fields[name] = inp.get('value', '')

    return AutoSubmitForm(
        action=action,
        method=(form.get('method') or 'POST').upper(),
        fields=fields,
    )


def extract_saml_response(soup):
    """Return the SAMLResponse value, or None when the input or its value is missing."""
    saml_input = soup.find('input', attrs={'name': 'SAMLResponse'})
    if saml_input is None:
        return None
    return saml_input.get('value')


def decode_saml_response(saml_response):
    # IdPs may wrap the base64 at 76 columns
    compact = ''.join(saml_response.split())
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as e:
        raise AssertionDecodeError(f'failed to decode saml-response: {e}') from e


def state_token_from_page(body):
    """Scrape the state token Okta embeds in its sign-in page JavaScript."""
    m = STATE_TOKEN_RE.search(body)
    if not m:
        raise ExtractionError('cannot find state token')
    return m.group(1).replace('\\x2D', '-')
