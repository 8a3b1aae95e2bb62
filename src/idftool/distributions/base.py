"""Core distribution registry infrastructure."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from importlib import import_module, metadata
from pathlib import Path
from typing import Any

import numpy as np
import yaml

Pdf = Callable[[np.ndarray, Mapping[str, float]], np.ndarray]
Cdf = Callable[[np.ndarray, Mapping[str, float]], np.ndarray]
Quantile = Callable[[np.ndarray, Mapping[str, float]], np.ndarray]
LmomToPar = Callable[[np.ndarray], dict[str, float]]
MomentsToPar = Callable[[float, float, float], dict[str, float] | None]
Feasible = Callable[[Mapping[str, float]], bool]

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "idftool.distributions"
CONFIG_ENV_VAR = "IDFTOOL_DISTRIBUTIONS"

TRANSFORMS = {None, "log10"}


@dataclass(slots=True)
class Distribution:
    """Describe a distribution family and its fitting relations.

    ``quantile``, ``cdf`` and ``pdf`` operate in the fitted space, i.e. on
    ``log10(x)`` when ``transform == "log10"``. ``lmom_to_par`` receives the
    vector ``(l1, l2, t3, t4, t5)`` (mean, L-scale and L-moment ratios).
    """

    name: str
    parameters: tuple[str, ...]
    quantile: Quantile
    cdf: Cdf
    pdf: Pdf
    lmom_to_par: LmomToPar | None = None
    moments_to_par: MomentsToPar | None = None
    aliases: tuple[str, ...] = ()
    transform: str | None = None
    positive: tuple[str, ...] = ()
    lmom_sign_normalize: bool = False
    feasible: Feasible | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        if self.transform not in TRANSFORMS:
            raise ValueError(
                f"Unsupported transform '{self.transform}' for distribution '{self.name}'."
            )

    @property
    def n_params(self) -> int:
        return len(self.parameters)

    @property
    def n_lmoments(self) -> int:
        """Number of L-moments needed to identify the family (at least two)."""
        return max(2, self.n_params)


_REGISTRY: dict[str, Distribution] = {}
_ALIASES: dict[str, str] = {}


def list_distributions() -> Iterable[str]:
    """Return registered distribution names."""
    return sorted(_REGISTRY.keys())


def get_distribution(name: str) -> Distribution:
    """Retrieve a distribution by name or alias."""
    key = name.strip().lower()
    key = _ALIASES.get(key, key)
    if key not in _REGISTRY:
        raise KeyError(f"Unknown distribution '{name}'.")
    return _REGISTRY[key]


def register_distribution(distribution: Distribution, *, overwrite: bool = False) -> None:
    """Register a distribution (and its aliases) in the global registry."""
    key = distribution.name.lower()
    if key in _REGISTRY and not overwrite:
        raise ValueError(f"Distribution '{distribution.name}' already registered.")
    _REGISTRY[key] = distribution
    for alias in distribution.aliases:
        _ALIASES[alias.lower()] = key


def clear_registry() -> None:
    """Reset the registry (primarily for testing)."""
    _REGISTRY.clear()
    _ALIASES.clear()


_CALLABLE_FIELDS = ("quantile", "cdf", "pdf")
_OPTIONAL_FIELDS = ("lmom_to_par", "moments_to_par", "feasible")


def _import_path(path: str) -> Any:
    """Resolve ``package.module:attribute`` (or a plain dotted path)."""
    module_name, sep, attribute = path.partition(":")
    if not sep:
        module_name, _, attribute = path.rpartition(".")
    if not (module_name and attribute):
        raise ValueError(f"Cannot import '{path}'; use 'module:attribute'.")
    return getattr(import_module(module_name), attribute)


def _from_mapping(entry: Mapping[str, Any]) -> Distribution:
    missing = [key for key in _CALLABLE_FIELDS if not entry.get(key)]
    if missing:
        raise ValueError(f"Family '{entry['name']}' lacks {', '.join(missing)}.")
    resolved = {key: _import_path(entry[key]) for key in _CALLABLE_FIELDS}
    resolved.update(
        {key: _import_path(entry[key]) for key in _OPTIONAL_FIELDS if entry.get(key)}
    )
    return Distribution(
        name=str(entry["name"]),
        parameters=tuple(map(str, entry.get("parameters", ()))),
        aliases=tuple(map(str, entry.get("aliases", ()))),
        positive=tuple(map(str, entry.get("positive", ()))),
        transform=entry.get("transform"),
        lmom_sign_normalize=bool(entry.get("lmom_sign_normalize", False)),
        notes=entry.get("notes"),
        **resolved,
    )


def _families(candidate: Any) -> Iterator[Distribution]:
    """Flatten a plugin payload into ``Distribution`` records.

    Accepts a record, a mapping of import paths, a factory returning either,
    or any iterable of these.
    """
    if isinstance(candidate, Distribution):
        yield candidate
    elif isinstance(candidate, Mapping):
        if "name" not in candidate:
            raise TypeError("Family mappings need a 'name' key.")
        yield _from_mapping(candidate)
    elif callable(candidate):
        yield from _families(candidate())
    elif isinstance(candidate, Iterable) and not isinstance(candidate, str | bytes):
        for item in candidate:
            yield from _families(item)
    else:
        raise TypeError(f"Cannot build a distribution family from {type(candidate).__name__}.")


def _register_all(candidate: Any, *, overwrite: bool = True) -> list[str]:
    names: list[str] = []
    for dist in _families(candidate):
        register_distribution(dist, overwrite=overwrite)
        names.append(dist.name)
    return names


def load_entry_points(group: str = ENTRY_POINT_GROUP) -> list[str]:
    """Register families advertised under the ``group`` entry point."""
    try:
        advertised = metadata.entry_points().select(group=group)
    except Exception as exc:  # pragma: no cover - broken environment metadata
        logger.debug("Entry point discovery failed: %s", exc)
        return []

    loaded: list[str] = []
    for ep in advertised:
        try:
            loaded.extend(_register_all(ep.load()))
        except Exception as exc:  # pragma: no cover - plugin failure
            logger.warning("Ignoring distribution plugin '%s': %s", ep.name, exc)
    return loaded


def _yaml_payload(entry: Mapping[str, Any]) -> Any:
    if "callable" not in entry:
        return entry
    factory = _import_path(entry["callable"])
    return factory(*entry.get("args", ()), **entry.get("kwargs", {}))


def load_yaml_config(path: str | os.PathLike[str]) -> list[str]:
    """Register the families listed under ``distributions:`` in a YAML file.

    An entry either names the callables by import path (``quantile``, ``cdf``,
    ``pdf``, optionally ``lmom_to_par`` and ``moments_to_par``) or points at a
    ``callable`` factory called with ``args``/``kwargs``. Broken entries are
    logged and skipped.
    """
    path = Path(path)
    if not path.is_file():
        logger.debug("Distribution config %s not found", path)
        return []
    try:
        document = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        logger.warning("Unreadable distribution config %s: %s", path, exc)
        return []

    registered: list[str] = []
    for entry in document.get("distributions", []):
        try:
            payload = _yaml_payload(entry)
            registered.extend(_register_all(payload, overwrite=entry.get("overwrite", True)))
        except Exception as exc:
            logger.warning("Skipping distribution entry in %s (%r): %s", path, entry, exc)
    return registered


def load_env_configs(variable: str = CONFIG_ENV_VAR) -> list[str]:
    """Load every YAML file listed (``os.pathsep`` separated) in ``variable``."""
    paths = [item for item in os.environ.get(variable, "").split(os.pathsep) if item]
    return [name for item in paths for name in load_yaml_config(item)]


__all__ = [
    "Distribution",
    "ENTRY_POINT_GROUP",
    "CONFIG_ENV_VAR",
    "Pdf",
    "Cdf",
    "Quantile",
    "LmomToPar",
    "MomentsToPar",
    "Feasible",
    "list_distributions",
    "get_distribution",
    "register_distribution",
    "clear_registry",
    "load_entry_points",
    "load_yaml_config",
    "load_env_configs",
]
