"""Tracer configuration defaults and validation.

``validate_config(conf)`` normalizes a plain dict of tracer settings,
raising ``ValueError`` on invalid values. There is no file or
environment lookup: callers build the dict themselves (the CLI builds
it from its flags).
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

# Single source of truth for default tracer configuration
DEFAULT_CONFIG: dict = {
    'trace_level': 0,
    'prefix': '',
    'frame_source': False,
    'trace_source': False,
    'callers_source': 0,
}


def _non_negative_int(conf: dict, key: str) -> int:
    raw = conf.get(key, DEFAULT_CONFIG[key])
    if isinstance(raw, bool):
        raise ValueError(f"Invalid '{key}': {raw!r}")
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid '{key}': {raw!r}")
    if value < 0:
        raise ValueError(f"Invalid '{key}': must be >= 0")
    return value


def _flag(conf: dict, key: str) -> bool:
    raw = conf.get(key, DEFAULT_CONFIG[key])
    if not isinstance(raw, bool):
        raise ValueError(f"Invalid '{key}': must be boolean")
    return raw


def validate_config(conf: dict | None) -> dict:
    """Validate and normalize a tracer configuration dictionary.

    Returns a new dict with all expected keys. Unknown keys are ignored.
    Raises ``ValueError`` on invalid values.
    """
    if conf is None:
        conf = {}

    out = dict(DEFAULT_CONFIG)

    # trace_level — unsigned bitmask; hex strings like "0x7" are accepted
    level = conf.get('trace_level', DEFAULT_CONFIG['trace_level'])
    if isinstance(level, str):
        try:
            level = int(level, 0)
        except ValueError:
            raise ValueError(f"Invalid 'trace_level': {level!r}")
    out['trace_level'] = _non_negative_int({'trace_level': level}, 'trace_level')

    prefix = conf.get('prefix', DEFAULT_CONFIG['prefix'])
    if not isinstance(prefix, str):
        raise ValueError("Invalid 'prefix': must be a string")
    out['prefix'] = prefix

    out['frame_source'] = _flag(conf, 'frame_source')
    out['trace_source'] = _flag(conf, 'trace_source')
    out['callers_source'] = _non_negative_int(conf, 'callers_source')

    unknown = set(conf) - set(DEFAULT_CONFIG)
    if unknown:
        logger.debug("Ignoring unknown tracer config keys: %s", sorted(unknown))

    return out
