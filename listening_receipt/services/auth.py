"""Spotify login through the Authorization Code flow with PKCE"""
import base64
import hashlib
import logging
import secrets
import string
from typing import Dict, List, Optional
from urllib.parse import urlencode

import requests

from listening_receipt.config import settings
from listening_receipt.errors import ExchangeFailedError, MissingVerifierError
from listening_receipt.services.storage import ACCESS_TOKEN_KEY, CODE_VERIFIER_KEY, ClientStorage

logger = logging.getLogger(__name__)

VERIFIER_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
VERIFIER_LENGTH = 64

def generate_code_verifier(length: int = VERIFIER_LENGTH) -> str:
    """Random verifier over an URL-safe alphanumeric alphabet, drawn without modulo bias"""
    return "".join(secrets.choice(VERIFIER_ALPHABET) for _ in range(length))

def build_code_challenge(verifier: str) -> str:
    """S256 challenge: unpadded base64url of the verifier's SHA-256 digest"""
    digest = hashlib.sha256(verifier.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")

def build_authorization_url(auth_url: str, client_id: str, scopes: List[str],
                            code_challenge: str, redirect_uri: str) -> str:
    params = {
        "response_type": "code",
        "client_id": client_id,
        "scope": " ".join(scopes),
        "code_challenge_method": "S256",
        "code_challenge": code_challenge,
        "redirect_uri": redirect_uri,
    }
    return f"{auth_url}?{urlencode(params)}"


class AuthSession:
    """
    Login state of one client.

    Owns the pending PKCE verifier and the access token, both kept in the
    injected ClientStorage. Only one login attempt may be in flight: starting a
    new one overwrites the stored verifier.
    """

    def __init__(self, storage: ClientStorage,
                 http: Optional[requests.Session] = None,
                 client_id: Optional[str] = None,
                 redirect_uri: Optional[str] = None,
                 scopes: Optional[List[str]] = None,
                 auth_url: Optional[str] = None,
                 token_url: Optional[str] = None,
                 timeout: Optional[float] = None):
        self.storage = storage
        self.http = http or requests.Session()
        self.client_id = client_id if client_id is not None else settings.SPOTIFY_CLIENT_ID
        self.redirect_uri = redirect_uri if redirect_uri is not None else settings.SPOTIFY_REDIRECT_URI
        self.scopes = list(scopes if scopes is not None else settings.SPOTIFY_SCOPES)
        self.auth_url = auth_url or settings.SPOTIFY_AUTH_URL
        self.token_url = token_url or settings.SPOTIFY_TOKEN_URL
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT_SECONDS
        if not self.client_id:
            logger.warning("SPOTIFY_CLIENT_ID is not configured. Spotify will reject the login.")

    @property
    def access_token(self) -> Optional[str]:
        return self.storage.get(ACCESS_TOKEN_KEY)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    def begin_login(self) -> str:
        """
        Start a login attempt.

        Returns:
            The authorization URL the user must be redirected to
        """
        verifier = generate_code_verifier()
        challenge = build_code_challenge(verifier)
        self.storage.set(CODE_VERIFIER_KEY, verifier)
        logger.info("PKCE verifier stored, redirecting to Spotify authorization")
        return build_authorization_url(
            self.auth_url, self.client_id, self.scopes, challenge, self.redirect_uri
        )

    def exchange(self, code: str) -> str:
        """
        Redeem an authorization code for an access token.

        The stored verifier is deleted only when a token comes back, so a failed
        exchange leaves it in place.

        Raises:
            MissingVerifierError: no login was started in this client
            ExchangeFailedError: Spotify returned no token or the request failed
        """
        verifier = self.storage.get(CODE_VERIFIER_KEY)
        if not verifier:
            logger.error("No code verifier found")
            raise MissingVerifierError()

        payload = {
            "client_id": self.client_id,
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri,
            "code_verifier": verifier,
        }
        headers = {"Content-Type": "application/x-www-form-urlencoded"}
        try:
            response = self.http.post(self.token_url, data=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Network error during token exchange: {e}")
            raise ExchangeFailedError(f"Token exchange request failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            # requests.JSONDecodeError is a ValueError as well as a RequestException
            logger.error(f"Token endpoint returned a non-JSON body (status {response.status_code})")
            raise ExchangeFailedError("Token endpoint returned an unreadable response") from e

        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            error: Dict = data if isinstance(data, dict) else {}
            logger.error(f"Token exchange failed: {error.get('error')} {error.get('error_description', '')}".rstrip())
            raise ExchangeFailedError(f"Token exchange failed: {error.get('error', 'no access token in response')}")

        self.storage.delete(CODE_VERIFIER_KEY)
        logger.info("Token exchange successful")
        return token

    def complete_login(self, code: Optional[str] = None, error: Optional[str] = None) -> str:
        """Handle the redirect back from Spotify and persist the access token"""
        if error:
            logger.error(f"Spotify Auth Error: {error}")
            raise ExchangeFailedError(f"Authorization was denied: {error}")
        if not code:
            logger.error("Callback reached without an authorization code")
            raise ExchangeFailedError("No authorization code in callback")

        token = self.exchange(code)
        self.storage.set(ACCESS_TOKEN_KEY, token)
        return token

    def invalidate(self) -> None:
        """Forget the access token after Spotify stopped accepting it"""
        self.storage.delete(ACCESS_TOKEN_KEY)
        logger.info("Access token cleared, log in again")

    def logout(self) -> None:
        self.storage.delete(ACCESS_TOKEN_KEY)
        self.storage.delete(CODE_VERIFIER_KEY)
        logger.info("Logged out of Spotify")
