"""Serialization of configuration objects for summaries and manifests."""

import dataclasses
from enum import Enum
from typing import Any, Dict, List, Tuple


def serialize_config(config: Any) -> Any:
    """Recursively serialize a configuration object to plain Python values.

    Handles:
    - Frozen and regular dataclasses (recursively serialized)
    - Enums (serialized by member name)
    - Tuples (converted to lists for JSON compatibility)
    - Primitive types (passed through)

    Args:
        config: Configuration object (typically a dataclass)

    Returns:
        Representation suitable for JSON serialization
    """
    if dataclasses.is_dataclass(config) and not isinstance(config, type):
        result = {}
        for f in dataclasses.fields(config):
            result[f.name] = serialize_config(getattr(config, f.name))
        return result

    elif isinstance(config, Enum):
        return config.name

    elif isinstance(config, (tuple, list)):
        return [serialize_config(item) for item in config]

    elif isinstance(config, dict):
        return {key: serialize_config(value) for key, value in config.items()}

    else:
        # Primitive types: int, float, str, bool, None
        return config


def config_items(config: Any) -> List[Tuple[str, Any]]:
    """Flatten a configuration dataclass into (name, value) pairs.

    Nested dataclasses are flattened with dotted names.
    """
    serialized = serialize_config(config)
    if not isinstance(serialized, dict):
        raise TypeError(f"Expected a dataclass instance, got {type(config).__name__}")

    items: List[Tuple[str, Any]] = []

    def _walk(prefix: str, node: Dict[str, Any]) -> None:
        for key, value in node.items():
            name = f"{prefix}{key}"
            if isinstance(value, dict):
                _walk(f"{name}.", value)
            else:
                items.append((name, value))

    _walk("", serialized)
    return items
