"""
repodb config package public API.

File: src/repodb/config/__init__.py

Purpose
- Export config loading/validation entrypoints and public error types.

Functional requirements
- Support loading from ``repodb.toml`` + ``REPODB_`` env overrides.
- Fail fast with clear structured validation/load errors.
"""

from repodb.config.loader import (
    DEFAULT_CONFIG_FILE,
    ENV_PREFIX,
    ConfigLoadError,
    build_store,
    dump_effective_config,
    load_config,
    load_config_file,
    normalize_paths,
    store_names,
)
from repodb.config.schema import (
    DEFAULT_CONFIG,
    PATH_FIELDS,
    ConfigSchemaVersion,
    ConfigValidationError,
    ConfigValidationIssue,
    ConfigValidationResult,
    RepodbConfig,
    StoreSettings,
    assert_valid_config,
    default_config,
    dump_redacted,
    merge_config,
    migration_guidance,
    redact_config,
    validate_config,
)

__all__ = [
    "ConfigLoadError",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "PATH_FIELDS",
    "RepodbConfig",
    "StoreSettings",
    "assert_valid_config",
    "build_store",
    "default_config",
    "dump_effective_config",
    "dump_redacted",
    "load_config",
    "load_config_file",
    "merge_config",
    "migration_guidance",
    "normalize_paths",
    "redact_config",
    "store_names",
    "validate_config",
]
