"""Application configuration and environment settings"""
from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    # Spotify application credentials (PKCE flow, no client secret)
    SPOTIFY_CLIENT_ID: str = Field("", description="Spotify application client ID")
    SPOTIFY_REDIRECT_URI: str = Field("http://127.0.0.1:5173/callback", description="Redirect URI registered for the application")

    # Spotify endpoints
    SPOTIFY_AUTH_URL: str = Field("https://accounts.spotify.com/authorize", description="Authorization endpoint")
    SPOTIFY_TOKEN_URL: str = Field("https://accounts.spotify.com/api/token", description="Token endpoint")
    SPOTIFY_API_URL: str = Field("https://api.spotify.com/v1", description="Base URL for Spotify Web API")
    SPOTIFY_SCOPES: List[str] = Field(
        default=["user-top-read", "user-read-private", "user-read-email"],
        description="Scopes requested at login"
    )

    # Fetch limits
    SPOTIFY_MAX_IDS_PER_BATCH: int = Field(50, description="Max artist IDs per batch lookup")
    TOP_TRACKS_LIMIT: int = Field(50, description="Top tracks requested per fetch (Spotify max is 50)")
    RECEIPT_LENGTH: int = Field(10, description="Tracks printed on the receipt by default")
    REQUEST_TIMEOUT_SECONDS: float = Field(15, description="Timeout for a single Spotify request")
    GENRE_MAX_WORKERS: int = Field(4, description="Concurrent artist batch lookups")

    # Client state storage
    STATE_DB_URL: str = Field("sqlite:///receipt_state.db", description="SQLAlchemy URL of the client state store")

    # Output and logging
    OUTPUT_DIR: str = Field("output", description="Directory for report files")
    LOG_LEVEL: str = Field("INFO", description="Logging level for the command line")
    DEFAULT_USERNAME: Optional[str] = Field("Spotify User", description="Name used when the profile has no display name")

    @property
    def scope_string(self) -> str:
        """Scopes as a space-delimited string for the authorize request"""
        return " ".join(self.SPOTIFY_SCOPES)

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True
    )

settings = Settings()

# Time windows accepted by the top tracks endpoint
SHORT_TERM = "short_term"    # ~4 weeks
MEDIUM_TERM = "medium_term"  # ~6 months
LONG_TERM = "long_term"      # several years
TIME_RANGES = (SHORT_TERM, MEDIUM_TERM, LONG_TERM)
