"""
repodb — runtime config loader.

File: src/repodb/config/loader.py

Purpose
- Load effective runtime config from defaults, TOML file, env vars, and CLI overrides.
- Build configured stores, resolving credentials from the environment.

Functional requirements
- Precedence: CLI > env (REPODB_) > file > defaults.
- Path fields are normalized relative to the config file location.
- Secrets come only from the env vars named by ``password_env``/``token_env``.

Non-functional requirements
- Keep loading deterministic and reproducible.
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final, Literal

from repodb.config.schema import (
    PATH_FIELDS,
    STORE_PATH_FIELDS,
    ConfigValidationError,
    ConfigValidationIssue,
    assert_valid_config,
    default_config,
    dump_redacted,
    merge_config,
)
from repodb.store.auth import CommitIdentity, GitAuth
from repodb.store.git_store import GitStore

if TYPE_CHECKING:
    import logging

DEFAULT_CONFIG_FILE: Final[str] = "repodb.toml"
ENV_PREFIX: Final[str] = "REPODB_"

_BOOLEAN_TRUE: Final[frozenset[str]] = frozenset({"1", "true", "t", "yes", "y", "on"})
_BOOLEAN_FALSE: Final[frozenset[str]] = frozenset({"0", "false", "f", "no", "n", "off"})

_OPTIONAL_STORE_BINDINGS: Final[tuple[tuple[str, Literal["str", "bool"]], ...]] = (
    ("branch", "str"),
    ("user", "str"),
    ("password_env", "str"),
    ("token_env", "str"),
    ("insecure", "bool"),
    ("commit_name", "str"),
    ("commit_email", "str"),
)


@dataclass(frozen=True, slots=True)
class _Binding:
    path: tuple[str, ...]
    value_type: Literal["str", "int", "float", "bool"]


class ConfigLoadError(ValueError):
    """Raised when config cannot be loaded or overrides cannot be coerced."""


def load_config(
    config_path: str | Path | None = None,
    *,
    cli_overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Load effective config with deterministic precedence: CLI > env > file > defaults."""

    resolved_path = _resolve_config_path(config_path)
    explicit_path = config_path is not None
    env_map = dict(os.environ if environ is None else environ)

    file_payload = _load_toml_file(resolved_path, required=explicit_path)

    merged = merge_config(default_config(), file_payload)
    merged = assert_valid_config(merged)

    merged = merge_config(merged, _collect_env_overrides(merged, env_map))
    merged = merge_config(merged, _materialize_cli_overrides(dict(cli_overrides or {})))
    merged = assert_valid_config(merged)

    return normalize_paths(merged, base_dir=resolved_path.parent)


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Load config from a specific TOML file path."""

    return load_config(path)


def normalize_paths(config: Mapping[str, object], *, base_dir: Path) -> dict[str, Any]:
    """Normalize configured path fields relative to ``base_dir``."""

    materialized = merge_config({}, config)

    for field_path in PATH_FIELDS:
        _normalize_path_field(materialized, field_path, base_dir)

    stores = materialized.get("stores")
    if isinstance(stores, Mapping):
        for store_name in sorted(stores):
            for key in STORE_PATH_FIELDS:
                _normalize_path_field(materialized, ("stores", store_name, key), base_dir)

    return materialized


def dump_effective_config(config: Mapping[str, object]) -> str:
    """Return a deterministic JSON dump of the redacted effective config."""

    return json.dumps(
        dump_redacted(config), sort_keys=True, separators=(",", ":"), ensure_ascii=False
    )


def store_names(config: Mapping[str, object]) -> tuple[str, ...]:
    stores = config.get("stores")
    if not isinstance(stores, Mapping):
        return ()
    return tuple(sorted(stores))


def build_store(
    config: Mapping[str, object],
    name: str | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    logger: logging.Logger | None = None,
) -> GitStore:
    """
    Build the configured store ``name``.

    With ``name`` omitted the config must declare exactly one store. Credentials
    are read from the environment variables named in the store settings; a named
    variable that is unset or blank raises :class:`ConfigLoadError`.
    """

    names = store_names(config)
    if name is None:
        if len(names) != 1:
            detail = "no stores are configured" if not names else "choose one with --store"
            raise ConfigValidationError(
                (ConfigValidationIssue("stores", f"store name required: {detail}"),)
            )
        name = names[0]
    settings = _get_nested(config, ("stores", name))
    if name not in names or not isinstance(settings, Mapping):
        raise ConfigValidationError(
            (ConfigValidationIssue(f"stores.{name}", "store is not defined"),)
        )

    env_map = os.environ if environ is None else environ

    auth = GitAuth(
        user=settings.get("user"),
        password=_secret_from_env(settings, "password_env", name, env_map),
        token=_secret_from_env(settings, "token_env", name, env_map),
        insecure=bool(settings.get("insecure", False)),
    )
    identity_fields = {
        key: settings[source]
        for key, source in (("name", "commit_name"), ("email", "commit_email"))
        if source in settings
    }

    git_section = config.get("git")
    documents_section = config.get("documents")
    timeout = git_section.get("timeout_seconds") if isinstance(git_section, Mapping) else None
    indent = documents_section.get("indent") if isinstance(documents_section, Mapping) else None

    extra: dict[str, Any] = {}
    if isinstance(timeout, (int, float)):
        extra["timeout_seconds"] = float(timeout)
    if isinstance(indent, int):
        extra["indent"] = indent

    return GitStore(
        name,
        settings["url"],
        settings["path"],
        branch=settings.get("branch"),
        auth=auth,
        identity=CommitIdentity(**identity_fields),
        logger=logger,
        **extra,
    )


def _secret_from_env(
    settings: Mapping[str, Any],
    key: str,
    store_name: str,
    environ: Mapping[str, str],
) -> str | None:
    env_name = settings.get(key)
    if env_name is None:
        return None
    value = environ.get(env_name, "")
    if not value.strip():
        raise ConfigLoadError(
            f"missing required secret environment variable value: "
            f"stores.{store_name}.{key} -> {env_name}"
        )
    return value


def _resolve_config_path(config_path: str | Path | None) -> Path:
    if config_path is None:
        return (Path.cwd() / DEFAULT_CONFIG_FILE).resolve()
    return Path(config_path).expanduser().resolve()


def _load_toml_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigLoadError(f"config file not found: {path}")
        return {}

    try:
        with path.open("rb") as handle:
            parsed = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigLoadError(f"invalid TOML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigLoadError(f"unable to read config file {path}: {exc}") from exc

    return parsed


def _collect_env_overrides(
    config: Mapping[str, object], environ: Mapping[str, str]
) -> dict[str, Any]:
    bindings = _build_bindings(config)
    overrides: dict[str, Any] = {}
    for env_name in sorted(bindings):
        raw = environ.get(env_name)
        if raw is None:
            continue
        binding = bindings[env_name]
        value = _coerce_env(raw, binding.value_type, env_name, binding.path)
        _set_nested(overrides, binding.path, value)
    return overrides


def _build_bindings(config: Mapping[str, object]) -> dict[str, _Binding]:
    bindings: dict[str, _Binding] = {}

    for path, value in _iter_scalar_paths(config):
        kind = _kind_for_value(value)
        if kind is None:
            continue
        bindings[_env_name_for_path(path)] = _Binding(path=path, value_type=kind)

    # Optional store settings can be supplied by env even when absent from the file.
    for store_name in store_names(config):
        for key, kind in _OPTIONAL_STORE_BINDINGS:
            binding = _Binding(("stores", store_name, key), kind)
            bindings.setdefault(_env_name_for_path(binding.path), binding)

    return bindings


def _iter_scalar_paths(
    payload: Mapping[str, object],
    prefix: tuple[str, ...] = (),
) -> list[tuple[tuple[str, ...], object]]:
    pairs: list[tuple[tuple[str, ...], object]] = []
    for key in sorted(payload):
        value = payload[key]
        path = (*prefix, key)
        if isinstance(value, Mapping):
            pairs.extend(_iter_scalar_paths(value, path))
        else:
            pairs.append((path, value))
    return pairs


def _kind_for_value(value: object) -> Literal["str", "int", "float", "bool"] | None:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "str"
    return None


def _coerce_env(
    raw: str,
    value_type: Literal["str", "int", "float", "bool"],
    env_name: str,
    path: tuple[str, ...],
) -> object:
    value = raw.strip()
    if value_type == "str":
        return value
    if value_type == "int":
        try:
            return int(value)
        except ValueError as exc:
            raise ConfigLoadError(f"{env_name} -> {'.'.join(path)} must be an integer") from exc
    if value_type == "float":
        try:
            return float(value)
        except ValueError as exc:
            raise ConfigLoadError(f"{env_name} -> {'.'.join(path)} must be a number") from exc

    lowered = value.lower()
    if lowered in _BOOLEAN_TRUE:
        return True
    if lowered in _BOOLEAN_FALSE:
        return False
    raise ConfigLoadError(
        f"{env_name} -> {'.'.join(path)} must be a boolean (true/false/1/0/yes/no/on/off)"
    )


def _materialize_cli_overrides(cli_overrides: Mapping[str, object]) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for key in sorted(cli_overrides):
        value = cli_overrides[key]
        path = tuple(part for part in key.split(".") if part)
        if not path:
            raise ConfigLoadError(f"invalid CLI override key {key!r}")
        _set_nested(payload, path, value)
    return payload


def _set_nested(target: dict[str, Any], path: tuple[str, ...], value: object) -> None:
    cursor = target
    for part in path[:-1]:
        next_node = cursor.get(part)
        if not isinstance(next_node, dict):
            next_node = {}
            cursor[part] = next_node
        cursor = next_node
    cursor[path[-1]] = value


def _get_nested(payload: Mapping[str, object], path: tuple[str, ...]) -> object | None:
    cursor: object = payload
    for part in path:
        if not isinstance(cursor, Mapping) or part not in cursor:
            return None
        cursor = cursor[part]
    return cursor


def _normalize_path_field(config: dict[str, Any], path: tuple[str, ...], base_dir: Path) -> None:
    value = _get_nested(config, path)
    if not isinstance(value, str) or not value:
        return
    _set_nested(config, path, _normalize_one_path(value, base_dir))


def _normalize_one_path(raw: str, base_dir: Path) -> str:
    expanded = os.path.expandvars(raw)
    candidate = Path(expanded).expanduser()
    if not candidate.is_absolute():
        candidate = base_dir / candidate
    return Path(os.path.normpath(str(candidate))).as_posix()


def _env_name_for_path(path: tuple[str, ...]) -> str:
    parts = (part.upper().replace("-", "_").replace(".", "_") for part in path)
    return ENV_PREFIX + "_".join(parts)


__all__ = [
    "ConfigLoadError",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "build_store",
    "dump_effective_config",
    "load_config",
    "load_config_file",
    "normalize_paths",
    "store_names",
]
