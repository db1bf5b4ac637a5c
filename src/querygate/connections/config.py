from __future__ import annotations

import pathlib
from typing import Dict, List

import yaml
from pydantic import ValidationError

from querygate.connections.models import ConnectionConfig


def load_connections(path: pathlib.Path) -> List[ConnectionConfig]:
    """
    Load connection entries from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        The connections in file order.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If the config format is invalid.
    """
    path = pathlib.Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Connection config not found: {path}")

    raw = yaml.safe_load(path.read_text())
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError("Connection config must be a YAML list of connections")

    connections: List[ConnectionConfig] = []
    seen: Dict[str, int] = {}
    for position, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValueError(f"Connection entry #{position} must be a mapping")
        try:
            conn = ConnectionConfig.model_validate(item)
        except ValidationError as exc:
            raise ValueError(f"Invalid connection entry #{position}: {exc}") from exc
        if conn.id in seen:
            raise ValueError(f"Duplicate connection id '{conn.id}'")
        seen[conn.id] = position
        connections.append(conn)
    return connections
