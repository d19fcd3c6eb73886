"""
``XGRAIN402_*`` variable lookup for the configuration loaders.

Variables are layered from the process environment, an optional ``.env``
file and explicit overrides. Keys may be given with or without the
``XGRAIN402_`` prefix, and blank values count as unset.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Mapping, Optional, Tuple

from .exceptions import ConfigurationError

__all__ = ["ENV_PREFIX", "PaymentEnvironment", "build_environment"]

ENV_PREFIX = "XGRAIN402_"


def _dotenv_pairs(path: Path) -> Iterator[Tuple[str, str]]:
    if not path.is_file():
        return
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line.startswith("export "):
            line = line[7:].lstrip()
        if line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep or not key.strip():
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
            value = value[1:-1]
        yield key.strip(), value


@dataclass(frozen=True)
class PaymentEnvironment:
    variables: Mapping[str, str]

    @staticmethod
    def qualified(key: str) -> str:
        return key if key.startswith(ENV_PREFIX) else ENV_PREFIX + key

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = (self.variables.get(self.qualified(key)) or "").strip()
        return value or default

    def require(self, key: str) -> str:
        value = self.get(key)
        if value is None:
            raise ConfigurationError(f"{self.qualified(key)} must be provided")
        return value

    def get_int(self, key: str) -> Optional[int]:
        """Integer value of ``key``, ``None`` when unset."""
        raw = self.get(key)
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError as exc:
            raise ConfigurationError(
                f"{self.qualified(key)} must be an integer, got '{raw}'"
            ) from exc


def build_environment(
    *,
    env_file: Optional[str] = ".env",
    base: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, str]] = None,
) -> PaymentEnvironment:
    """
    Layer ``base`` (default :data:`os.environ`), ``env_file`` and ``overrides``.

    Values already present in ``base`` win over the file; ``overrides`` win
    over both. ``env_file=None`` skips the file, and a missing file is ignored.
    """
    variables: Dict[str, str] = dict(os.environ if base is None else base)
    if env_file is not None:
        for key, value in _dotenv_pairs(Path(env_file)):
            variables.setdefault(key, value)
    variables.update(overrides or {})
    return PaymentEnvironment(variables)
