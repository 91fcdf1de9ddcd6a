"""Load ``MarketConfig`` from YAML, expanding ``${VAR}`` references from the environment."""

import os
import re
from pathlib import Path

import yaml

from .schema import MarketConfig

_ENV_REFERENCE = re.compile(r"\$\{([^}]+)\}")


def _lookup_env(match: re.Match[str]) -> str:
    name = match.group(1)
    try:
        return os.environ[name]
    except KeyError:
        raise ValueError(f"Environment variable {name} not found") from None


def substitute_env_vars(text: str) -> str:
    """Expand every ``${NAME}`` in ``text``.

    Raises:
        ValueError: ``NAME`` is not set
    """
    return _ENV_REFERENCE.sub(_lookup_env, text)


def load_config(path: Path | str) -> MarketConfig:
    """
    Read, expand and validate a configuration file.

    An empty file yields the defaults (in-memory store).

    Raises:
        FileNotFoundError: ``path`` does not exist
        ValueError: An environment variable is missing or sections disagree
        pydantic.ValidationError: A value is out of range or malformed
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    data = yaml.safe_load(substitute_env_vars(path.read_text())) or {}
    config = MarketConfig.model_validate(data)
    validate_config(config)
    return config


def validate_config(config: MarketConfig) -> None:
    """Checks that span more than one section of the schema.

    Raises:
        ValueError: The firestore provider is selected without a ``firestore`` section
    """
    store = config.store
    if store.provider == "firestore" and store.firestore is None:
        raise ValueError("store.provider is 'firestore' but firestore config missing")
