"""Engine configuration and construction.

Front ends (the REPL, the web UI) build their engine from an
``EngineConfig``.  The configuration can come from a JSON file::

    {
        "name_max": 64,
        "case_sensitive": true,
        "use_os_environment": true,
        "options": {"tabstop": "4", "shell": "/bin/bash"}
    }

Missing keys take their defaults.  ``options`` values are applied with
the option store's ``set`` primitive, so they use the same syntax as
``let &name = …``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from py_let.engine import VariableEngine
from py_let.env import Environment, OsEnvironment
from py_let.errors import OptionError
from py_let.options import OptionScope, default_options
from py_let.variables import VAR_NAME_MAX, platform_case_sensitive

if TYPE_CHECKING:
    from pathlib import Path

    from py_let.logging import Logger

PROJECT_NAME = "py-let"
VERSION = "0.1.0"


class ConfigError(RuntimeError):
    """Raised when a configuration file cannot be used.

    Examples: unreadable file, invalid JSON, unknown option.
    """


@dataclass(frozen=True)
class EngineConfig:
    """Settings a front end needs to build an engine."""

    name_max: int = VAR_NAME_MAX
    case_sensitive: bool = field(default_factory=platform_case_sensitive)
    use_os_environment: bool = True
    options: dict[str, str] = field(default_factory=lambda: {})  # noqa: PIE807


def load_config(path: Path) -> EngineConfig:
    """Read an ``EngineConfig`` from a JSON file.

    Raises:
        ConfigError: If the file cannot be read, is not a JSON object,
            or holds a value of the wrong type.

    """
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        msg = f"Cannot load configuration: {e}"
        raise ConfigError(msg) from e
    if not isinstance(data, dict):
        msg = f"Cannot load configuration: {path} does not hold a JSON object"
        raise ConfigError(msg)

    options = data.get("options", {})
    if not isinstance(options, dict):
        msg = "Cannot load configuration: 'options' must be a JSON object"
        raise ConfigError(msg)

    defaults = EngineConfig()
    name_max = data.get("name_max", defaults.name_max)
    # bool is an int subclass; true/false is not a length.
    if not isinstance(name_max, int) or isinstance(name_max, bool) or name_max < 1:
        msg = (
            "Cannot load configuration: 'name_max' must be a positive integer, "
            f"not {name_max!r}"
        )
        raise ConfigError(msg)

    return EngineConfig(
        name_max=name_max,
        case_sensitive=_flag(data, "case_sensitive", default=defaults.case_sensitive),
        use_os_environment=_flag(
            data, "use_os_environment", default=defaults.use_os_environment
        ),
        options={str(k): str(v) for k, v in options.items()},
    )


def _flag(data: dict[str, object], key: str, *, default: bool) -> bool:
    """Return the JSON boolean at *key*, or *default* when absent."""
    value = data.get(key, default)
    if not isinstance(value, bool):
        msg = f"Cannot load configuration: '{key}' must be true or false, not {value!r}"
        raise ConfigError(msg)
    return value


def build_engine(
    config: EngineConfig | None = None,
    *,
    environment: Environment | None = None,
    logger: Logger | None = None,
) -> VariableEngine:
    """Create an engine with the default option table.

    The engine is *not* bootstrapped; the caller owns that lifecycle.
    An explicit *environment* overrides ``config.use_os_environment``.

    Raises:
        ConfigError: If the name limit is below 1, or a configured option
            is unknown or rejects its value.

    """
    config = config if config is not None else EngineConfig()
    if config.name_max < 1:
        msg = f"Name limit must be at least 1, not {config.name_max}"
        raise ConfigError(msg)
    if environment is None:
        environment = OsEnvironment() if config.use_os_environment else Environment()
    options = default_options()

    for name, text in config.options.items():
        option = options.lookup(name, OptionScope.GLOBAL)
        if option is None:
            msg = f"Unknown option in configuration: {name}"
            raise ConfigError(msg)
        try:
            options.set(option, text)
        except OptionError as e:
            raise ConfigError(str(e)) from e

    return VariableEngine(
        environment=environment,
        options=options,
        logger=logger,
        case_sensitive=config.case_sensitive,
        name_max=config.name_max,
    )
