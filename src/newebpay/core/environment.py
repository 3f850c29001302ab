"""
Resolution of the ``NEWEBPAY_*`` variables that configure the gateway client.

Three layers are merged: the process environment (or a caller-supplied base
mapping), a ``.env`` file that only fills keys still unset, and explicit
overrides that always win. The result remembers which layer each key came
from so a misconfiguration can be traced back to its source.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, Mapping, MutableMapping, Optional, Tuple

__all__ = [
    "ORIGIN_BASE",
    "ORIGIN_FILE",
    "ORIGIN_OVERRIDE",
    "GatewayEnvironment",
    "build_environment",
    "load_env_file",
]

ORIGIN_BASE = "environment"
ORIGIN_FILE = "env-file"
ORIGIN_OVERRIDE = "override"

_QUOTES = ("'", '"')


def _parse_line(raw_line: str) -> Optional[Tuple[str, str]]:
    line = raw_line.strip()
    if line.startswith("export "):
        line = line[len("export "):].lstrip()
    if not line or line.startswith("#") or "=" not in line:
        return None

    key, _, value = line.partition("=")
    value = value.strip()
    if len(value) >= 2 and value[0] in _QUOTES and value[-1] == value[0]:
        value = value[1:-1]
    elif " #" in value:
        # Trailing comments only apply to unquoted values.
        value = value.split(" #", 1)[0].rstrip()
    return key.strip(), value


def _iter_env_file(path: Path) -> Iterator[Tuple[str, str]]:
    if not path.is_file():
        return
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        pair = _parse_line(raw_line)
        if pair is not None:
            yield pair


def load_env_file(
    path: str = ".env",
    *,
    environ: Optional[MutableMapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Copy variables from ``path`` into ``environ`` (default: :data:`os.environ`)
    without replacing keys that are already present, and return the merged
    mapping.
    """
    target: MutableMapping[str, str] = os.environ if environ is None else environ
    for key, value in _iter_env_file(Path(path)):
        target.setdefault(key, value)
    return dict(target)


@dataclass(frozen=True)
class GatewayEnvironment:
    variables: Mapping[str, str]
    origins: Mapping[str, str] = field(default_factory=dict)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.variables.get(key, default)

    def origin(self, key: str) -> Optional[str]:
        """Layer that supplied ``key``, or ``None`` when it is unset."""
        return self.origins.get(key)


def build_environment(
    *,
    env_file: Optional[str] = ".env",
    base: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, str]] = None,
) -> GatewayEnvironment:
    """
    Merge the base mapping, the ``.env`` file and ``overrides``.

    ``base`` defaults to :data:`os.environ`; an explicit empty mapping is
    respected. Pass ``env_file=None`` to skip the file.
    """
    variables: Dict[str, str] = {}
    origins: Dict[str, str] = {}

    def layer(pairs, origin: str, *, replace: bool) -> None:
        for key, value in pairs:
            if replace or key not in variables:
                variables[key] = value
                origins[key] = origin

    layer((os.environ if base is None else base).items(), ORIGIN_BASE, replace=True)
    if env_file is not None:
        layer(_iter_env_file(Path(env_file)), ORIGIN_FILE, replace=False)
    if overrides:
        layer(overrides.items(), ORIGIN_OVERRIDE, replace=True)

    return GatewayEnvironment(variables=variables, origins=origins)
