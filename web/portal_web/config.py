from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, TypedDict

import yaml


CONFIG_ENV_VAR = "PORTAL_CONFIG_PATH"

STORE_MODES = ("snapshot", "sparql", "rdf")

DEFAULT_MUTATION_ALTERATION_TYPES: Tuple[str, ...] = ("MUTATION_EXTENDED",)
DEFAULT_MATRIX_ALTERATION_TYPES: Tuple[str, ...] = (
    "COPY_NUMBER_ALTERATION",
    "MRNA_EXPRESSION",
    "MRNA_EXPRESSION_NORMALS",
    "RNA_EXPRESSION",
    "MICRO_RNA_EXPRESSION",
    "METHYLATION",
    "METHYLATION_BINARY",
    "PROTEIN_LEVEL",
    "PROTEIN_ARRAY_PROTEIN_LEVEL",
    "PROTEIN_ARRAY_PHOSPHORYLATION",
    "PHOSPHORYLATION",
)


class EndpointConfig(TypedDict):
    id: str
    label: str
    sparql_url: str


@dataclass
class StoreConfig:
    mode: str = "snapshot"
    snapshot_path: Optional[Path] = None
    rdf_paths: List[Path] = field(default_factory=list)
    timeout_s: float = 30.0


@dataclass
class ProfileDataConfig:
    delimiter: str = ","
    mutation_alteration_types: Tuple[str, ...] = DEFAULT_MUTATION_ALTERATION_TYPES
    matrix_alteration_types: Tuple[str, ...] = DEFAULT_MATRIX_ALTERATION_TYPES


@dataclass
class UIConfig:
    show_provenance: bool = True
    show_faults: bool = True
    max_rows: int = 200


@dataclass
class AppConfig:
    raw: Dict[str, Any]
    store: StoreConfig
    portal_endpoints: List[EndpointConfig]
    profile_data: ProfileDataConfig
    ui: UIConfig


class ConfigError(RuntimeError):
    """Raised when the portal configuration is missing or invalid."""


# web/configs/demo.local.yaml, independent of the working directory.
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[1] / "configs" / "demo.local.yaml"


def _read_yaml_mapping(path: Path) -> Dict[str, Any]:
    if not path.is_file():
        raise ConfigError(
            f"No portal config at '{path}'; point {CONFIG_ENV_VAR} at a YAML file."
        )
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in portal config '{path}': {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Portal config '{path}' must contain a YAML mapping at the top level.")
    return data


def _resolve_path(value: Any, base_dir: Path) -> Path:
    path = Path(str(value)).expanduser()
    return path if path.is_absolute() else (base_dir / path).resolve()


def _coerce_endpoint(item: Any, where: str) -> EndpointConfig:
    if not isinstance(item, dict):
        raise ConfigError(f"{where} must be a mapping with 'id' and 'sparql_url'.")
    missing = [key for key in ("id", "sparql_url") if not item.get(key)]
    if missing:
        raise ConfigError(f"{where} is missing required key(s): {', '.join(missing)}.")
    endpoint_id = str(item["id"])
    return EndpointConfig(
        id=endpoint_id,
        label=str(item.get("label") or endpoint_id),
        sparql_url=str(item["sparql_url"]),
    )


def _coerce_endpoints(section: Any, key: str) -> List[EndpointConfig]:
    items = (section.get("endpoints") if isinstance(section, dict) else None) or []
    if not isinstance(items, list):
        raise ConfigError(f"'{key}.endpoints' must be a list of endpoint mappings.")
    return [_coerce_endpoint(item, f"'{key}.endpoints[{idx}]'") for idx, item in enumerate(items)]


def _coerce_store(section: Any, base_dir: Path) -> StoreConfig:
    if not isinstance(section, dict):
        return StoreConfig()

    mode = str(section.get("mode", "snapshot"))
    if mode not in STORE_MODES:
        raise ConfigError(
            f"'store.mode' must be one of {', '.join(STORE_MODES)}; got '{mode}'."
        )

    snapshot = section.get("snapshot_path")
    rdf_paths = section.get("rdf_paths") or []
    if not isinstance(rdf_paths, list):
        raise ConfigError("'store.rdf_paths' must be a list.")

    return StoreConfig(
        mode=mode,
        snapshot_path=_resolve_path(snapshot, base_dir) if snapshot else None,
        rdf_paths=[_resolve_path(p, base_dir) for p in rdf_paths],
        timeout_s=float(section.get("timeout_s", 30.0)),
    )


def _coerce_type_list(section: Dict[str, Any], key: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    value = section.get(key)
    if value is None:
        return default
    if not isinstance(value, list):
        raise ConfigError(f"'profile_data.{key}' must be a list.")
    return tuple(str(v).upper() for v in value)


def _coerce_profile_data(section: Any) -> ProfileDataConfig:
    if not isinstance(section, dict):
        return ProfileDataConfig()

    delimiter = str(section.get("delimiter", ","))
    if not delimiter:
        raise ConfigError("'profile_data.delimiter' must not be empty.")

    mutation_types = _coerce_type_list(
        section, "mutation_alteration_types", DEFAULT_MUTATION_ALTERATION_TYPES
    )
    matrix_types = _coerce_type_list(
        section, "matrix_alteration_types", DEFAULT_MATRIX_ALTERATION_TYPES
    )
    overlap = set(mutation_types) & set(matrix_types)
    if overlap:
        raise ConfigError(
            "Alteration types cannot be both mutation-style and matrix-style: "
            + ", ".join(sorted(overlap))
        )
    return ProfileDataConfig(
        delimiter=delimiter,
        mutation_alteration_types=mutation_types,
        matrix_alteration_types=matrix_types,
    )


def _coerce_ui(section: Any) -> UIConfig:
    defaults = UIConfig()
    if not isinstance(section, dict):
        return defaults
    return UIConfig(
        show_provenance=bool(section.get("show_provenance", defaults.show_provenance)),
        show_faults=bool(section.get("show_faults", defaults.show_faults)),
        max_rows=int(section.get("max_rows", defaults.max_rows)),
    )


def _check_store_sources(store: StoreConfig, endpoints: List[EndpointConfig]) -> None:
    if store.mode == "snapshot" and store.snapshot_path is None:
        raise ConfigError("Store mode 'snapshot' requires 'store.snapshot_path'.")
    if store.mode == "rdf" and not store.rdf_paths:
        raise ConfigError("Store mode 'rdf' requires at least one entry in 'store.rdf_paths'.")
    if store.mode == "sparql" and not endpoints:
        raise ConfigError(
            "No portal SPARQL endpoints configured; store mode 'sparql' needs "
            "'sources.portal.endpoints[*].sparql_url'."
        )


_CACHED_CONFIG: Optional[AppConfig] = None


def load_config(force_reload: bool = False) -> AppConfig:
    """
    Load and validate the portal configuration.

    The file named by PORTAL_CONFIG_PATH wins; otherwise DEFAULT_CONFIG_PATH
    is used. Relative paths inside the file resolve against its directory.
    The result is cached for the process until `force_reload` is set.
    """

    global _CACHED_CONFIG
    if _CACHED_CONFIG is None or force_reload:
        override = os.environ.get(CONFIG_ENV_VAR)
        path = Path(override).expanduser() if override else DEFAULT_CONFIG_PATH
        _CACHED_CONFIG = _build_config(_read_yaml_mapping(path), path.resolve().parent)
    return _CACHED_CONFIG


def _build_config(raw: Dict[str, Any], base_dir: Path) -> AppConfig:
    store = _coerce_store(raw.get("store") or {}, base_dir)

    sources = raw.get("sources") or {}
    if not isinstance(sources, dict):
        raise ConfigError("'sources' must be a mapping of source name to settings.")
    endpoints = _coerce_endpoints(sources.get("portal"), "sources.portal")
    _check_store_sources(store, endpoints)

    return AppConfig(
        raw=raw,
        store=store,
        portal_endpoints=endpoints,
        profile_data=_coerce_profile_data(raw.get("profile_data") or {}),
        ui=_coerce_ui(raw.get("ui") or {}),
    )


__all__ = [
    "AppConfig",
    "StoreConfig",
    "ProfileDataConfig",
    "UIConfig",
    "EndpointConfig",
    "ConfigError",
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_PATH",
    "load_config",
]
