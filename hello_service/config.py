import os
import logging
from enum import Enum
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

from dotenv import dotenv_values

logger = logging.getLogger(__name__)

# ---- Constants ----
DEFAULT_CONFIG_DIR = Path(__file__).parent / "profiles"
BASE_FILE = "application.env"
DEFAULT_PORT = 8080

MESSAGE_KEY = "app.message"
PORT_KEY = "server.port"


class ConfigMissingError(ValueError):
    """Raised when required configuration is absent or unusable at startup."""


class Profile(Enum):
    DEFAULT = "default"
    DEV = "dev"
    PROD = "prod"

    @classmethod
    def from_name(cls, name: Optional[str]) -> "Profile":
        """Resolve a profile from its name, case-insensitively. Empty means DEFAULT."""
        if not name:
            return cls.DEFAULT
        try:
            return cls(name.strip().lower())
        except ValueError:
            valid = ", ".join(p.value for p in cls)
            raise ValueError(f"Unknown profile '{name}'. Expected one of: {valid}")

    @property
    def filename(self) -> Optional[str]:
        if self is Profile.DEFAULT:
            return None
        return f"application-{self.value}.env"


def env_var_name(key: str) -> str:
    """Relaxed binding name for a property key, e.g. app.message -> APP_MESSAGE."""
    return key.replace(".", "_").replace("-", "_").upper()


class AppConfig:
    """
    Resolved application configuration. Built once at startup, read-only afterwards.

    Attributes:
        profile (Profile): The active profile.
        message (str): Value of app.message.
        port (int): Value of server.port.
        properties (Dict[str, str]): All resolved key-value pairs.
    """
    __slots__ = ("_profile", "_message", "_port", "_properties")

    def __init__(self, profile: Profile, message: str, port: int = DEFAULT_PORT,
                 properties: Optional[Mapping[str, str]] = None):
        if message is None:
            raise ConfigMissingError(f"Required property '{MESSAGE_KEY}' is not set")
        self._profile = profile
        self._message = message
        self._port = port
        self._properties = dict(properties or {})

    @property
    def profile(self) -> Profile:
        return self._profile

    @property
    def message(self) -> str:
        return self._message

    @property
    def port(self) -> int:
        return self._port

    @property
    def properties(self) -> Dict[str, str]:
        return dict(self._properties)

    def __repr__(self):
        return f"AppConfig(profile={self._profile.value!r}, message={self._message!r}, port={self._port})"


def resolve_profile(profile: Union[Profile, str, None] = None,
                    environ: Optional[Mapping[str, str]] = None) -> Profile:
    """Explicit profile wins, then APP_PROFILE, then DEFAULT."""
    if isinstance(profile, Profile):
        return profile
    if profile:
        return Profile.from_name(profile)
    environ = os.environ if environ is None else environ
    return Profile.from_name(environ.get("APP_PROFILE"))


def read_properties(path: Path) -> Dict[str, str]:
    """Read one dotenv-format property file. Keys without a value are skipped."""
    values = dotenv_values(path)
    return {k: v for k, v in values.items() if v is not None}


def load_config(profile: Union[Profile, str, None] = None,
                config_dir: Union[str, Path, None] = None,
                environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """
    Load the configuration for the active profile.

    The base file is read first, then the profile file on top of it, then
    environment variable overrides (APP_MESSAGE, SERVER_PORT).

    Args:
        profile: Profile or profile name. Falls back to APP_PROFILE, then DEFAULT.
        config_dir: Directory holding the profile files. Falls back to
            APP_CONFIG_DIR, then the profiles shipped with the package.
        environ: Environment mapping used for lookups. Defaults to os.environ.

    Returns:
        AppConfig: The resolved configuration.

    Raises:
        ConfigMissingError: If app.message is missing, the selected profile
            file does not exist, or server.port is not an integer.
        ValueError: If the profile name is unknown.
    """
    environ = os.environ if environ is None else environ
    active = resolve_profile(profile, environ)

    if config_dir is None:
        config_dir = environ.get("APP_CONFIG_DIR") or DEFAULT_CONFIG_DIR
    config_dir = Path(config_dir).expanduser()

    logger.info(f"Loading configuration | Profile: {active.value} | Directory: {config_dir}")

    properties: Dict[str, str] = {}

    base_path = config_dir / BASE_FILE
    if base_path.is_file():
        properties.update(read_properties(base_path))
        logger.debug(f"Read base properties from {base_path}")
    else:
        logger.debug(f"No base properties file at {base_path}")

    if active.filename:
        profile_path = config_dir / active.filename
        if not profile_path.is_file():
            logger.error(f"Profile file not found: {profile_path}")
            raise ConfigMissingError(f"Profile '{active.value}' has no properties file at {profile_path}")
        properties.update(read_properties(profile_path))
        logger.debug(f"Read {active.value} properties from {profile_path}")

    # Relaxed binding overrides from the process environment
    for key in (MESSAGE_KEY, PORT_KEY):
        override = environ.get(env_var_name(key))
        if override is not None:
            logger.info(f"Property '{key}' overridden by {env_var_name(key)}")
            properties[key] = override

    message = properties.get(MESSAGE_KEY)
    if message is None:
        logger.error(f"Required property '{MESSAGE_KEY}' missing for profile '{active.value}'")
        raise ConfigMissingError(f"Required property '{MESSAGE_KEY}' is not set for profile '{active.value}'")

    raw_port = properties.get(PORT_KEY, str(DEFAULT_PORT))
    try:
        port = int(raw_port)
    except ValueError:
        raise ConfigMissingError(f"Property '{PORT_KEY}' must be an integer, got '{raw_port}'")

    config = AppConfig(profile=active, message=message, port=port, properties=properties)
    logger.info("Configuration loaded | Profile: %s | Port: %s", active.value, port)
    return config
