"""Configuration utilities for redirectguard.

Settings are read through Starlette's `Config` so they can come from the
environment or a `.env` file. `GuardSettings` is a plain frozen dataclass,
so code and tests can also build it directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from starlette.config import Config
from starlette.datastructures import CommaSeparatedStrings

from redirectguard.errors import DEFAULT_REJECTION_MESSAGE

# Protocols that survive `strip_dangerous_protocols`.
DEFAULT_ALLOWED_PROTOCOLS: tuple[str, ...] = (
    "http",
    "https",
    "ftp",
    "news",
    "nntp",
    "tel",
    "telnet",
    "mailto",
    "irc",
    "ssh",
    "sftp",
    "webcal",
    "rtsp",
)


@dataclass(frozen=True)
class GuardSettings:
    """Policy knobs for the redirect guard.

    Attributes:
        enforce_scheme: Require the redirect scheme to match the request's.
            Off by default, so `https://host/...` is local to `http://host`.
        sanitize_request: Drop foreign `destination` parameters from the
            query string before the application sees it.
        allowed_protocols: Schemes that make a destination count as external.
        rejection_message: Body message of the 400 response.
    """

    enforce_scheme: bool = False
    sanitize_request: bool = True
    allowed_protocols: tuple[str, ...] = DEFAULT_ALLOWED_PROTOCOLS
    rejection_message: str = DEFAULT_REJECTION_MESSAGE

    @classmethod
    def from_config(cls, config: Config) -> GuardSettings:
        """Read settings from a Starlette Config.

        Keys:
            - REDIRECT_GUARD_ENFORCE_SCHEME (bool, default False)
            - REDIRECT_GUARD_SANITIZE_REQUEST (bool, default True)
            - REDIRECT_GUARD_ALLOWED_PROTOCOLS (comma separated)
            - REDIRECT_GUARD_REJECTION_MESSAGE (str)

        """
        protocols = config(
            "REDIRECT_GUARD_ALLOWED_PROTOCOLS",
            cast=CommaSeparatedStrings,
            default=",".join(DEFAULT_ALLOWED_PROTOCOLS),
        )
        return cls(
            enforce_scheme=config(
                "REDIRECT_GUARD_ENFORCE_SCHEME", cast=bool, default=False
            ),
            sanitize_request=config(
                "REDIRECT_GUARD_SANITIZE_REQUEST", cast=bool, default=True
            ),
            allowed_protocols=tuple(p.lower() for p in protocols if p),
            rejection_message=config(
                "REDIRECT_GUARD_REJECTION_MESSAGE",
                default=DEFAULT_REJECTION_MESSAGE,
            ),
        )


def build_config(env_file: str = ".env") -> Config:
    """Build a Starlette Config, tolerating a missing `.env` file.

    Args:
        env_file: Path to a .env file to load variables from. If the file
            doesn't exist, only environment variables are used.

    Returns:
        Config: The configuration accessor.

    """
    if Path(env_file).exists():
        return Config(env_file)
    return Config()


def load_settings(env_file: str = ".env") -> GuardSettings:
    """Shortcut for `GuardSettings.from_config(build_config(env_file))`."""
    return GuardSettings.from_config(build_config(env_file))
