"""Runtime settings read from the environment (populate it with python-dotenv first)."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from naturaltime.cache import DEFAULT_MAX_SIZE

_ROOT = Path(__file__).parent.parent.parent

DEFAULT_EPHEMERIS = "de421.bsp"  # JPL DE421, valid 1900-2050


@dataclass(frozen=True)
class Settings:
    """Where the ephemeris lives and how large the caches may grow."""

    ephemeris: str = DEFAULT_EPHEMERIS  # Kernel file name
    data_dir: Path = field(default=_ROOT / "resources")  # skyfield Loader directory
    cache_size: int | None = DEFAULT_MAX_SIZE  # None: never evict


def _parse_cache_size(raw: str) -> int | None:
    value = raw.strip().lower()
    if value in ("", "0", "none", "unbounded"):
        return None
    try:
        size = int(value)
    except ValueError:
        raise ValueError(
            f"NATURALTIME_CACHE_SIZE must be an integer or 'none', got {raw!r}"
        ) from None
    if size < 0:
        raise ValueError(f"NATURALTIME_CACHE_SIZE must not be negative, got {size}")
    return size or None


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from environment variables.

    Args:
        environ: Mapping to read instead of ``os.environ``.

    Returns:
        Settings with every unset variable left at its default.

    Raises:
        ValueError: When a variable holds a malformed value.
    """
    env = os.environ if environ is None else environ
    settings = Settings()
    ephemeris = env.get("NATURALTIME_EPHEMERIS") or settings.ephemeris
    data_dir = env.get("NATURALTIME_DATA_DIR")
    cache_size = env.get("NATURALTIME_CACHE_SIZE")
    return Settings(
        ephemeris=ephemeris,
        data_dir=Path(data_dir).expanduser() if data_dir else settings.data_dir,
        cache_size=(
            _parse_cache_size(cache_size)
            if cache_size is not None
            else settings.cache_size
        ),
    )
