"""Error types raised by the listening data pipeline"""
from typing import Optional


class ReceiptError(Exception):
    """Base class for all pipeline errors"""


class AuthError(ReceiptError):
    """Authentication against Spotify could not be completed"""


class MissingVerifierError(AuthError):
    """Token exchange attempted without a pending login in this client"""

    def __init__(self, message: str = "No PKCE code verifier found, log in again"):
        super().__init__(message)


class ExchangeFailedError(AuthError):
    """Spotify rejected the authorization code or the exchange request failed"""


class NotAuthenticatedError(AuthError):
    """No access token is stored for this client"""

    def __init__(self, message: str = "Not logged in to Spotify"):
        super().__init__(message)


class FetchError(ReceiptError):
    """Non-success response from a Spotify data endpoint"""

    def __init__(self, status_code: Optional[int], reason: str, url: Optional[str] = None):
        self.status_code = status_code
        self.reason = reason
        self.url = url
        super().__init__(f"Spotify API Error: {reason}" if status_code is None
                         else f"Spotify API Error ({status_code}): {reason}")


class GenreResolutionError(ReceiptError):
    """An artist batch lookup failed; recovered inside the genre resolver"""

    def __init__(self, batch: list, cause: Exception):
        self.batch = batch
        self.cause = cause
        super().__init__(f"Artist batch of {len(batch)} starting with {batch[0] if batch else 'N/A'} failed: {cause}")
