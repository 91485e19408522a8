"""
Exceptions raised by the Okta login flow.

Everything derives from LoginError so callers (the CLI and the Flask
endpoint) can catch the whole family in one place.
"""


class LoginError(Exception):
    pass


class ConfigError(LoginError):
    pass


class TransportError(LoginError):
    """An HTTP exchange failed or came back with a non success/redirect status."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class ExtractionError(LoginError):
    pass


class AssertionDecodeError(ExtractionError):
    pass


class MfaError(LoginError):
    pass


class UnsupportedFactorError(MfaError):
    pass


class MfaRejectedError(MfaError):
    pass


class MfaTimeoutError(MfaError):
    """The provider reported that the user did not answer in time."""


class UnexpectedResponseError(MfaError):
    pass


class UnknownDocumentError(LoginError):
    """
    The redirect chain produced a page none of the form handlers recognise.

    The raw HTML is kept on ``document`` for diagnostics only; it is not part
    of the message.
    """

    def __init__(self, message='unknown document type', document=''):
        super().__init__(message)
        self.document = document


class TooManyRedirectsError(LoginError):
    pass


class LoginTimeoutError(LoginError):
    """The client side deadline for the whole login attempt ran out."""


class PromptCancelledError(LoginError):
    pass
