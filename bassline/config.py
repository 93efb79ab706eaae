"""Application configuration."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings with env var overrides."""

    # Musical timing
    beats_per_bar: int = 4
    bars_before_first_cue: int = 4
    chorus_lead_seconds: float = 7.0
    chorus_duration_fraction: float = 0.25  # chorus estimate when none is classified
    default_tempo: float = 120.0

    # Section classifier
    chorus_min_loudness_db: float = -10.0
    chorus_min_confidence: float = 0.5
    chorus_positions: tuple[int, ...] = (1, 3, 5)
    quiet_max_loudness_db: float = -15.0

    # Narration
    allowed_cue_texts: tuple[str, ...] = (
        "We're just warming up the legs here",
        "Chorus in 7 seconds",
    )
    poll_interval_seconds: float = 0.1
    # Phase-clock windows (start, end) in seconds since phase start, one per cue
    phase_clock_windows: tuple[tuple[float, float], ...] = ((10.0, 20.0), (30.0, 40.0))

    # Track analysis cache
    cache_ttl_seconds: float = 30 * 24 * 60 * 60
    cache_max_entries: int = 1000

    # Analysis provider
    analysis_base_url: str = "https://api.spotify.com/v1"
    analysis_token: str | None = None
    analysis_timeout_seconds: float = 10.0

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = {"env_prefix": "BASSLINE_"}


settings = Settings()
