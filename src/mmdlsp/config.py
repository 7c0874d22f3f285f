"""
Settings resolution for mmdlsp.

Settings come from a cascade (highest priority first):

1. Client configuration: ``initializationOptions`` at startup, then the
   ``mermaid`` section of ``workspace/didChangeConfiguration``.
2. A ``.mmdlsp.toml`` project file in the workspace root.
3. Built-in defaults.

Each field is resolved independently, so a client that only sets
``debounce`` still picks up ``validator`` from the project file.  Values of
the wrong type are ignored (and logged) rather than rejected.
"""
from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

logger = logging.getLogger(__name__)

PROJECT_CONFIG = '.mmdlsp.toml'
VALIDATORS = ('structural', 'command')

# Client-facing (camelCase) key -> Settings field.
_CLIENT_KEYS = {
    'debounce': 'debounce',
    'indentWidth': 'indent_width',
    'validator': 'validator',
    'validatorCommand': 'validator_command',
    'validatorTimeout': 'validator_timeout',
    'logLevel': 'log_level',
}


@dataclass(frozen=True)
class Settings:
    debounce: float = 0.5
    indent_width: int = 4
    validator: str = 'structural'
    validator_command: list[str] = field(default_factory=lambda: ['mmdc-validate'])
    validator_timeout: float = 10.0
    log_level: str | None = None


def _coerce(name: str, value):
    """Return *value* converted for field *name*, or raise ``ValueError``."""
    if name in ('debounce', 'validator_timeout'):
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            raise ValueError(f'{name} must be a non-negative number')
        return float(value)
    if name == 'indent_width':
        if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 16:
            raise ValueError('indent_width must be an integer between 1 and 16')
        return value
    if name == 'validator':
        if value not in VALIDATORS:
            raise ValueError(f'validator must be one of {", ".join(VALIDATORS)}')
        return value
    if name == 'validator_command':
        if isinstance(value, str):
            value = value.split()
        if not isinstance(value, list) or not value or not all(isinstance(v, str) for v in value):
            raise ValueError('validator_command must be a command line')
        return list(value)
    if name == 'log_level':
        if not isinstance(value, str):
            raise ValueError('log_level must be a string')
        return value
    raise ValueError(f'unknown setting {name}')


def _parse_values(raw: dict, keys: dict[str, str]) -> dict:
    values = {}
    for key, name in keys.items():
        if key not in raw or raw[key] is None:
            continue
        try:
            values[name] = _coerce(name, raw[key])
        except ValueError as e:
            logger.warning('ignoring setting %s=%r: %s', key, raw[key], e)
    return values


def read_project_config(workspace_root: str | None) -> dict:
    """Parse ``.mmdlsp.toml`` in *workspace_root* into a dict of field values."""
    if not workspace_root:
        return {}
    config_path = Path(workspace_root) / PROJECT_CONFIG
    if not config_path.is_file():
        return {}
    try:
        data = tomllib.loads(config_path.read_text(encoding='utf-8'))
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning('could not read %s: %s', config_path, e)
        return {}
    # The file uses the Python field names (snake_case).
    return _parse_values(data, {f.name: f.name for f in fields(Settings)})


def client_values(options) -> dict:
    """Extract settings from an LSP ``initializationOptions``/settings payload.

    Accepts either the bare options dict or one nested under ``mermaid``.
    """
    if options is None:
        return {}
    if not isinstance(options, dict):
        options = {k: getattr(options, k) for k in _CLIENT_KEYS if hasattr(options, k)}
    section = options.get('mermaid')
    if isinstance(section, dict):
        options = section
    return _parse_values(options, _CLIENT_KEYS)


class SettingsResolver:
    """Merges client, project-file and default settings."""

    def __init__(self, workspace_root: str | None = None):
        self._workspace_root = workspace_root
        self._client: dict = {}

    @property
    def workspace_root(self) -> str | None:
        return self._workspace_root

    def set_client_values(self, values: dict) -> None:
        """Replace client-level overrides (``{}`` clears them)."""
        self._client = dict(values)

    def update_client_values(self, values: dict) -> None:
        self._client.update(values)

    def resolve(self) -> Settings:
        merged = read_project_config(self._workspace_root)
        merged.update(self._client)
        return replace(Settings(), **merged)
