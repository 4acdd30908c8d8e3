"""Configuration loader for aws-creds-sync."""
import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, Mapping, Optional
import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "AWS_CREDS_SYNC_CONFIG"
DEFAULT_TIMEOUT = 30.0

# Built-in settings per target, overridden by the config file
DEFAULTS: Dict[str, Dict[str, Any]] = {
    "circleci": {
        "organization": "cohuebn",
        "api_url": "https://circleci.com/api/v2/",
        "vcs": "gh",
        "token_env": "CIRCLE_CI_API_TOKEN",
    },
    "terraform": {
        "organization": "cory-huebner-training",
        "api_url": "https://app.terraform.io/api/v2/",
        "token_env": "TF_API_TOKEN",
    },
}


class ConfigError(Exception):
    """Configuration error exception."""
    pass


@dataclass(frozen=True)
class TargetSettings:
    """Resolved settings for one remote target."""
    name: str
    organization: str
    api_url: str
    api_token: str
    timeout: float = DEFAULT_TIMEOUT
    vcs: Optional[str] = None

    def __repr__(self) -> str:
        return (
            f"TargetSettings(name={self.name!r}, organization={self.organization!r}, "
            f"api_url={self.api_url!r}, timeout={self.timeout!r}, vcs={self.vcs!r})"
        )


def _get_config_path() -> Path:
    """
    Get config file path.

    Priority order:
    1. AWS_CREDS_SYNC_CONFIG environment variable
    2. Default location: ~/.config/aws-creds-sync/config.yml

    Returns:
        Path to the config file (which may not exist)
    """
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / ".config" / "aws-creds-sync" / "config.yml"


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load and validate the optional YAML configuration file.

    Args:
        config_path: Explicit path, defaults to the resolved config location

    Returns:
        Dict with optional 'circleci', 'terraform' and 'http' sections.
        Empty when no config file exists.

    Raises:
        ConfigError: If the config file is unreadable or malformed
    """
    config_path = Path(config_path) if config_path else _get_config_path()

    if not config_path.exists():
        if os.getenv(CONFIG_ENV_VAR):
            raise ConfigError(f"Configuration file not found at: {config_path}")
        logger.debug(f"No config file at {config_path}, using defaults")
        return {}

    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML config at {config_path}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read config file at {config_path}: {e}")

    if config is None:
        return {}

    if not isinstance(config, dict):
        raise ConfigError(f"Config file at {config_path} must contain a mapping")

    for section in ("circleci", "terraform", "http"):
        if config.get(section) is not None and not isinstance(config[section], dict):
            raise ConfigError(f"Section '{section}' in {config_path} must be a mapping")

    timeout = (config.get("http") or {}).get("timeout")
    if timeout is not None:
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ConfigError(f"'http.timeout' must be a positive number, got {timeout!r}")

    logger.debug(f"Configuration loaded from {config_path}")
    return config


def get_target_settings(
    target: str,
    organization: Optional[str] = None,
    config: Optional[Dict[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> TargetSettings:
    """
    Build settings for a target from defaults, config file and CLI overrides.

    Args:
        target: 'circleci' or 'terraform'
        organization: CLI override for the organization name
        config: Loaded config, loaded from disk if not provided
        environ: Environment mapping, defaults to os.environ

    Raises:
        ConfigError: If the target is unknown or its API token is not set
    """
    if target not in DEFAULTS:
        raise ConfigError(f"Unknown target: {target}")

    if config is None:
        config = load_config()
    if environ is None:
        environ = os.environ

    merged = dict(DEFAULTS[target])
    merged.update(config.get(target) or {})

    token_env = merged["token_env"]
    api_token = environ.get(token_env)
    if not api_token:
        raise ConfigError(f"{token_env} environment variable is not set")

    timeout = (config.get("http") or {}).get("timeout", DEFAULT_TIMEOUT)

    return TargetSettings(
        name=target,
        organization=organization or merged["organization"],
        api_url=merged["api_url"],
        api_token=api_token,
        timeout=float(timeout),
        vcs=merged.get("vcs"),
    )
