"""
Provider configuration and SignalFx credential resolution.

The auth token is resolved once per process, before any resource operation,
from a precedence chain where every source that yields a token overwrites the
previous one (last successful source wins):

  1. system config file   ``/etc/signalfx.conf``      ``{"auth_token": "..."}``
  2. per-user config file ``~/.signalfx.conf``         same JSON shape
  3. netrc record for ``api.signalfx.com`` (password is the token)
  4. explicit ``auth_token`` (CLI flag, or ``SFX_AUTH_TOKEN`` from env/.env)

A config file that exists but cannot be parsed is fatal. A missing file is
skipped. An empty token after the whole chain raises :class:`ConfigError`.
"""
from __future__ import annotations

import json
import netrc
import os
import sys
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from .logging_utils import get_logger

log = get_logger(__name__)

SYSTEM_CONFIG_PATH = "/etc/signalfx.conf"
HOME_CONFIG_NAME = ".signalfx.conf"
API_HOST = "api.signalfx.com"
TOKEN_FIELD = "auth_token"
TOKEN_ENV_VAR = "SFX_AUTH_TOKEN"

DEFAULT_API_URL = "https://api.signalfx.com/v2"
DEFAULT_APP_URL = "https://app.signalfx.com"


class ConfigError(Exception):
    """Raised when provider configuration or credentials cannot be resolved."""
    pass


@dataclass(frozen=True)
class ProviderConfig:
    """Immutable provider settings shared (read-only) by every resource operation."""
    auth_token: str
    api_url: str = DEFAULT_API_URL
    app_url: str = DEFAULT_APP_URL

    def __repr__(self) -> str:
        return f"ProviderConfig(auth_token=<{len(self.auth_token)} chars>, api_url={self.api_url!r}, app_url={self.app_url!r})"


@lru_cache(maxsize=1)
def default_home_config_path() -> Path:
    """Per-user config path, computed once per process."""
    return Path.home() / HOME_CONFIG_NAME


def default_netrc_path() -> Path:
    env_path = os.getenv("NETRC")
    if env_path:
        return Path(env_path)
    filename = "_netrc" if sys.platform.startswith("win") else ".netrc"
    return Path.home() / filename


class CredentialResolver:
    """Resolve the SignalFx auth token from files and explicit configuration.

    Args:
        system_config_path: System-wide JSON config file.
        home_config_path: Per-user JSON config file (default ``~/.signalfx.conf``).
        netrc_path: netrc file (default ``$NETRC`` or ``~/.netrc``).
        api_host: Machine name looked up in the netrc file.
    """

    def __init__(
        self,
        system_config_path: str | Path = SYSTEM_CONFIG_PATH,
        home_config_path: str | Path | None = None,
        netrc_path: str | Path | None = None,
        *,
        api_host: str = API_HOST,
    ) -> None:
        self.system_config_path = Path(system_config_path)
        self.home_config_path = Path(home_config_path) if home_config_path else default_home_config_path()
        self.netrc_path = Path(netrc_path) if netrc_path else default_netrc_path()
        self.api_host = api_host

    def resolve(self, auth_token: Optional[str] = None) -> str:
        """Run the precedence chain and return the token.

        Raises:
            ConfigError: A present file is malformed, or no source yields a token.
        """
        token = ""

        for label, path in (("system", self.system_config_path), ("home", self.home_config_path)):
            log.debug("Looking for config in %s config (%s)", label, path)
            if not path.exists():
                log.debug("Could not find %s", path)
                continue
            found = self._read_config_file(path)
            if found:
                log.debug("Found token in %s (length %d)", path, len(found))
                token = found

        found = self._read_netrc()
        if found:
            log.debug("Found token for %s in %s (length %d)", self.api_host, self.netrc_path, len(found))
            token = found

        if auth_token:
            log.debug("Using explicit auth_token (length %d, previous length %d)", len(auth_token), len(token))
            token = auth_token

        if not token:
            raise ConfigError(f"{TOKEN_FIELD}: required field is not set")
        return token

    def _read_config_file(self, path: Path) -> str:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigError(f"Failed to open config file {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Failed to parse config file ({path}): {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Failed to parse config file ({path}): expected a JSON object")
        value = data.get(TOKEN_FIELD)
        if value is None:
            return ""
        if not isinstance(value, str):
            raise ConfigError(f"Failed to parse config file ({path}): {TOKEN_FIELD} must be a string")
        return value

    def _read_netrc(self) -> str:
        path = self.netrc_path
        if not path.exists() or path.is_dir():
            return ""
        try:
            parsed = netrc.netrc(str(path))
        except netrc.NetrcParseError as exc:
            raise ConfigError(f"Error parsing netrc file at {str(path)!r}: {exc}") from exc
        except OSError as exc:
            raise ConfigError(f"Failed to open netrc file {path}: {exc}") from exc
        auth = parsed.authenticators(self.api_host)
        if not auth:
            return ""
        _login, _account, password = auth
        return password or ""


def load_provider_config(
    auth_token: Optional[str] = None,
    *,
    resolver: Optional[CredentialResolver] = None,
    api_url: Optional[str] = None,
    app_url: Optional[str] = None,
) -> ProviderConfig:
    """Load `.env`, resolve the token and build a :class:`ProviderConfig`.

    ``SFX_AUTH_TOKEN`` fills the explicit slot when *auth_token* is not given,
    so an explicit value still wins over the environment.
    """
    env_path = find_dotenv(usecwd=True) or ""
    if env_path:
        load_dotenv(env_path, override=False)

    explicit = auth_token or os.getenv(TOKEN_ENV_VAR) or None
    token = (resolver or CredentialResolver()).resolve(explicit)

    return ProviderConfig(
        auth_token=token,
        api_url=(api_url or os.getenv("SIGNALFORM_API_URL") or DEFAULT_API_URL).rstrip("/"),
        app_url=(app_url or os.getenv("SIGNALFORM_APP_URL") or DEFAULT_APP_URL).rstrip("/"),
    )
