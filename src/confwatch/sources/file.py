"""Loader reading YAML or JSON configuration files."""

import json
import logging
from collections.abc import Mapping
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml

from confwatch.interface import Loader
from confwatch.values import Values

logger = logging.getLogger(__name__)


def flatten(data: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested mappings into dotted keys.

    >>> flatten({"db": {"host": "x", "port": 5432}})
    {'db.host': 'x', 'db.port': 5432}
    """
    flat: dict[str, Any] = {}
    for key, value in data.items():
        full_key = f"{prefix}{key}"
        if isinstance(value, Mapping) and value:
            flat.update(flatten(value, prefix=f"{full_key}."))
        else:
            flat[full_key] = value
    return flat


class FileLoader(Loader):
    """Loads a YAML (``.yaml``/``.yml``) or JSON (``.json``) file.

    Nested mappings are flattened into dotted keys. Any other suffix is
    parsed as YAML.
    """

    def __init__(
        self,
        path: str | Path,
        max_retry: int = 0,
        retry_delay: float | timedelta = 1.0,
        stop_on_failure: bool = False,
        name: str | None = None,
    ):
        self.path = Path(path)
        self._max_retry = max_retry
        self._retry_delay = retry_delay
        self._stop_on_failure = stop_on_failure
        self._name = name or f"file:{self.path.name}"

    @property
    def name(self) -> str:
        return self._name

    def _parse(self, text: str) -> Any:
        if self.path.suffix == ".json":
            return json.loads(text)
        return yaml.safe_load(text)

    async def load(self, values: Values) -> None:
        if not self.path.exists():
            raise FileNotFoundError(f"Config file not found: {self.path}")

        data = self._parse(self.path.read_text(encoding="utf-8"))
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ValueError(f"Config file {self.path} must contain a mapping, got {type(data).__name__}")

        for key, value in flatten(data).items():
            values.set(key, value)
        logger.debug(f"Read {len(values)} key(s) from {self.path}")

    def max_retry(self) -> int:
        return self._max_retry

    def retry_delay(self) -> float | timedelta:
        return self._retry_delay

    def stop_on_failure(self) -> bool:
        return self._stop_on_failure
