"""
Credential resolution for the Exoscale API.

Looks in order at:
- the per-user exoscale.toml written by the ``exo`` CLI (two candidate paths)
- $EXOSCALE_API_KEY / $EXOSCALE_API_SECRET
- $TF_VAR_exoscale_api_key / $TF_VAR_exoscale_secret_key

Each field is resolved independently, so a key from the environment can be
combined with a secret from the config file.

Author: exoscale-auth contributors
Date: 2026-10-18
"""

import logging
import os
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from exoscale_auth.auth.exceptions import CredentialsNotFoundError

logger = logging.getLogger(__name__)

CREDENTIAL_FIELDS = ("key", "secret")

PRIMARY_ENV_VARS = ("EXOSCALE_API_KEY", "EXOSCALE_API_SECRET")
TERRAFORM_ENV_VARS = ("TF_VAR_exoscale_api_key", "TF_VAR_exoscale_secret_key")

_FIELD_PATTERNS = {
    "key": re.compile(r'\bkey\s*=\s*"([^"]*)"'),
    "secret": re.compile(r'\bsecret\s*=\s*"([^"]*)"'),
}


@dataclass(frozen=True)
class Credentials:
    """An API key and its secret."""

    key: str
    secret: str = field(repr=False)


class ConfigFileSource:
    """Credential values extracted from an exoscale.toml file."""

    def __init__(self, path: Path, text: Optional[str]):
        self.path = path
        self.text = text

    @classmethod
    def read(cls, path: Path) -> "ConfigFileSource":
        """Read a config file, tolerating its absence."""
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            logger.debug(f"Credentials file not readable: {path} ({e})")
            text = None
        return cls(path, text)

    @property
    def description(self) -> str:
        return str(self.path)

    def lookup(self, name: str) -> Optional[str]:
        if self.text is None:
            return None
        match = _FIELD_PATTERNS[name].search(self.text)
        return match.group(1) if match else None


class EnvironmentSource:
    """Credential values read from a pair of environment variables."""

    def __init__(self, environ: Mapping[str, str], key_var: str, secret_var: str):
        self.environ = environ
        self.variables = {"key": key_var, "secret": secret_var}

    @property
    def description(self) -> str:
        return ", ".join(self.variables.values())

    def lookup(self, name: str) -> Optional[str]:
        return self.environ.get(self.variables[name])


def default_config_paths(
    home: Path,
    environ: Mapping[str, str],
    platform: str = sys.platform,
) -> List[Path]:
    """
    Candidate locations of the per-user exoscale.toml, in lookup order.

    Args:
        home: User home directory
        environ: Environment snapshot (for APPDATA / XDG_CONFIG_HOME)
        platform: Value of sys.platform to resolve paths for

    Returns:
        Up to two distinct paths
    """
    candidates = [home / ".config" / "exoscale" / "exoscale.toml"]

    if platform == "darwin":
        candidates.append(home / "Library" / "Application Support" / "exoscale" / "exoscale.toml")
    elif platform.startswith("win"):
        appdata = environ.get("APPDATA")
        base = Path(appdata) if appdata else home / "AppData" / "Roaming"
        candidates.append(base / "exoscale" / "exoscale.toml")
    elif environ.get("XDG_CONFIG_HOME"):
        candidates.append(Path(environ["XDG_CONFIG_HOME"]) / "exoscale" / "exoscale.toml")

    unique: List[Path] = []
    for path in candidates:
        if path not in unique:
            unique.append(path)
    return unique


class CredentialResolver:
    """
    Resolves credentials from an ordered chain of sources.

    Sources are consulted in order for each field separately; the first
    non-empty value wins.

    Example:
        resolver = CredentialResolver.from_environment()
        creds = resolver.resolve()
    """

    def __init__(self, sources: Sequence):
        self.sources = list(sources)

    @classmethod
    def from_environment(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        home: Optional[Path] = None,
        config_paths: Optional[Sequence[Path]] = None,
        env_var_pairs: Sequence[Tuple[str, str]] = (PRIMARY_ENV_VARS, TERRAFORM_ENV_VARS),
    ) -> "CredentialResolver":
        """
        Build the default source chain from an environment snapshot.

        Args:
            environ: Environment variables (default: a copy of os.environ)
            home: Home directory (default: Path.home())
            config_paths: Override the candidate config file paths
            env_var_pairs: (key_var, secret_var) pairs in priority order

        Returns:
            CredentialResolver instance
        """
        environ = dict(os.environ) if environ is None else environ
        if config_paths is None:
            home = home or Path.home()
            config_paths = default_config_paths(home, environ)

        sources: list = [ConfigFileSource.read(Path(p)) for p in config_paths]
        sources.extend(
            EnvironmentSource(environ, key_var, secret_var)
            for key_var, secret_var in env_var_pairs
        )
        return cls(sources)

    def resolve(self, explicit: Optional[Credentials] = None) -> Credentials:
        """
        Resolve an API key and secret.

        Args:
            explicit: Caller-supplied credentials, returned untouched

        Returns:
            Credentials

        Raises:
            CredentialsNotFoundError: If either field remains unresolved
        """
        if explicit is not None:
            return explicit

        found: Dict[str, str] = {}
        for name in CREDENTIAL_FIELDS:
            for source in self.sources:
                value = source.lookup(name)
                if value:
                    logger.debug(f"Resolved API {name} from {source.description}")
                    found[name] = value
                    break

        missing = [name for name in CREDENTIAL_FIELDS if name not in found]
        if missing:
            raise CredentialsNotFoundError(
                missing=missing,
                tried_files=[
                    str(s.path) for s in self.sources if isinstance(s, ConfigFileSource)
                ],
                tried_env_vars=[
                    var
                    for s in self.sources
                    if isinstance(s, EnvironmentSource)
                    for var in s.variables.values()
                ],
            )

        return Credentials(key=found["key"], secret=found["secret"])
