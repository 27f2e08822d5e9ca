"""Configuration for pgquerygen.

Settings are layered, lowest precedence first:

1. Built-in defaults
2. Config file: top-level keys, then the named profile (--profile,
   PGQUERYGEN_PROFILE or default_profile)
3. libpq environment variables (PGHOST, PGPORT, ...)
4. PGQUERYGEN_DSN
5. --dsn flag
6. Individual CLI flags (--host, --schema, --timeout, ...)

Every resolved value remembers the layer that set it, for `config show`.

The config file is --config, else PGQUERYGEN_CONFIG, else
~/.config/pgquerygen/config.toml. Relative globs and output_dir in its
[gen] table are taken relative to the file, so a project can keep its
config next to its queries.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qs, unquote, urlparse

from pydantic import (
    BaseModel,
    ConfigDict,
    ValidationError,
    field_validator,
    model_validator,
)

from pgquerygen.core.exceptions import ConfigError

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "pgquerygen" / "config.toml"
CONFIG_ENV_VAR = "PGQUERYGEN_CONFIG"
PROFILE_ENV_VAR = "PGQUERYGEN_PROFILE"
DSN_ENV_VAR = "PGQUERYGEN_DSN"

_LIBPQ_ENV_VARS: dict[str, str] = {
    "PGHOST": "host",
    "PGPORT": "port",
    "PGDATABASE": "dbname",
    "PGUSER": "user",
    "PGPASSWORD": "password",  # pragma: allowlist secret
    "PGSSLMODE": "sslmode",
}

_SSL_MODES = frozenset(
    {"disable", "allow", "prefer", "require", "verify-ca", "verify-full"}
)

# CLI flag name -> ResolvedConfig field
_CLI_FIELDS: dict[str, str] = {
    "host": "host",
    "port": "port",
    "database": "dbname",
    "user": "user",
    "password": "password",  # pragma: allowlist secret
    "schema": "search_path",
    "timeout": "statement_timeout",
}

# GenSettings field -> gen command flag
_GEN_FLAGS: dict[str, str] = {
    "query_globs": "--query-glob",
    "schema_globs": "--schema-glob",
    "output_dir": "--output-dir",
    "keep_going": "--keep-going",
}


def parse_dsn(dsn: str) -> dict[str, Any]:
    """Split a postgresql:// or postgres:// URL into connection fields."""
    parsed = urlparse(dsn)
    if parsed.scheme not in ("postgresql", "postgres"):
        msg = f"Invalid DSN scheme: '{parsed.scheme}'. Expected 'postgresql' or 'postgres'"
        raise ConfigError(msg)

    result: dict[str, Any] = {}
    if parsed.hostname:
        result["host"] = parsed.hostname
    if parsed.port:
        result["port"] = parsed.port
    if parsed.path.strip("/"):
        result["dbname"] = unquote(parsed.path.strip("/"))
    if parsed.username:
        result["user"] = unquote(parsed.username)
    if parsed.password:
        result["password"] = unquote(parsed.password)
    sslmode = parse_qs(parsed.query).get("sslmode")
    if sslmode:
        result["sslmode"] = sslmode[0]
    return result


def parse_search_path(value: str | list[str]) -> list[str]:
    """Accept "library, archive" as well as ["library", "archive"]."""
    items = value.split(",") if isinstance(value, str) else value
    return [s.strip() for s in items if s.strip()]


class _ConnectionFields(BaseModel):
    """Connection settings shared by profiles and the resolved config."""

    model_config = ConfigDict(extra="forbid")

    host: str = "localhost"
    port: int = 5432
    dbname: str = "postgres"
    user: str | None = None
    password: str | None = None
    sslmode: str = "prefer"
    search_path: list[str] = []

    @field_validator("sslmode")
    @classmethod
    def validate_sslmode(cls, v: str) -> str:
        if v not in _SSL_MODES:
            msg = f"Invalid sslmode: '{v}'. Must be one of: {', '.join(sorted(_SSL_MODES))}"
            raise ValueError(msg)
        return v

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not 1 <= v <= 65535:
            msg = f"Invalid port: {v}. Must be 1-65535"
            raise ValueError(msg)
        return v

    @field_validator("search_path", mode="before")
    @classmethod
    def split_search_path(cls, v: Any) -> Any:
        if isinstance(v, str | list):
            return parse_search_path(v)
        return v


class PgProfile(_ConnectionFields):
    """A [profiles.<name>] table; dsn fills in fields not given explicitly."""

    dsn: str | None = None
    statement_timeout: float | None = None

    @model_validator(mode="before")
    @classmethod
    def parse_dsn_into_components(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("dsn"):
            data = {**parse_dsn(data["dsn"]), **data}
        return data


class GenSettings(BaseModel):
    """Defaults for the gen command, from the [gen] table of the config file."""

    model_config = ConfigDict(extra="forbid")

    query_globs: list[str] = []
    schema_globs: list[str] = []
    output_dir: Path | None = None
    keep_going: bool = False

    def anchored(self, base_dir: Path) -> GenSettings:
        """Copy with relative globs and output_dir made relative to base_dir."""

        def anchor(pattern: str) -> str:
            return pattern if Path(pattern).is_absolute() else str(base_dir / pattern)

        output_dir = self.output_dir
        if output_dir is not None and not output_dir.is_absolute():
            output_dir = base_dir / output_dir
        return self.model_copy(
            update={
                "query_globs": [anchor(p) for p in self.query_globs],
                "schema_globs": [anchor(p) for p in self.schema_globs],
                "output_dir": output_dir,
            }
        )


class ResolvedGenSettings(GenSettings):
    sources: dict[str, str] = {}


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    statement_timeout: float = 30.0
    default_format: str | None = None
    default_profile: str | None = None
    profiles: dict[str, PgProfile] = {}
    gen: GenSettings = GenSettings()


class ResolvedConfig(_ConnectionFields):
    statement_timeout: float = 30.0
    default_format: str | None = None
    active_profile: str | None = None
    sources: dict[str, str] = {}


class _Layers:
    """Values merged layer by layer, remembering which layer set each key."""

    def __init__(self) -> None:
        self.values: dict[str, Any] = {}
        self.sources: dict[str, str] = {}

    def apply(self, values: Mapping[str, Any], source: str) -> None:
        for key, value in values.items():
            if value is None:
                continue
            self.values[key] = value
            self.sources[key] = source


def config_path(explicit: Path | None = None) -> Path:
    """The config file in effect: --config, PGQUERYGEN_CONFIG or the default."""
    if explicit is not None:
        return explicit
    from_env = os.environ.get(CONFIG_ENV_VAR)
    return Path(from_env) if from_env else DEFAULT_CONFIG_PATH


def load_config(path: Path | None = None) -> AppConfig:
    """Load the config file, or defaults if it doesn't exist.

    Raises ConfigError on malformed TOML, unknown keys or invalid values.
    """
    path = config_path(path)
    if not path.exists():
        return AppConfig()

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Malformed TOML in {path}: {e}"
        raise ConfigError(msg) from e

    try:
        config = AppConfig.model_validate(data)
    except ValidationError as e:
        msg = f"Invalid configuration in {path}: {e}"
        raise ConfigError(msg) from e
    return config.model_copy(update={"gen": config.gen.anchored(path.parent)})


def _active_profile(config: AppConfig, profile_name: str | None) -> str | None:
    name = profile_name or os.environ.get(PROFILE_ENV_VAR) or config.default_profile
    if name and name not in config.profiles:
        available = ", ".join(sorted(config.profiles)) or "none"
        msg = f"Unknown profile: '{name}'. Available profiles: {available}"
        raise ConfigError(msg)
    return name


def _libpq_env() -> dict[str, tuple[Any, str]]:
    found: dict[str, tuple[Any, str]] = {}
    for env_var, field_name in _LIBPQ_ENV_VARS.items():
        value: Any = os.environ.get(env_var)
        if value is None:
            continue
        if field_name == "port":
            try:
                value = int(value)
            except ValueError:
                msg = f"Invalid {env_var} value: '{value}'. Must be an integer"
                raise ConfigError(msg) from None
        found[field_name] = (value, env_var)
    return found


def resolve_config(
    config: AppConfig,
    profile_name: str | None = None,
    dsn: str | None = None,
    **cli_overrides: Any,
) -> ResolvedConfig:
    """Merge every configuration layer into the settings for one connection."""
    layers = _Layers()
    layers.apply(
        ResolvedConfig().model_dump(exclude={"active_profile", "sources"}), "default"
    )
    layers.apply(
        config.model_dump(
            include={"statement_timeout", "default_format"}, exclude_defaults=True
        ),
        "config",
    )

    active = _active_profile(config, profile_name)
    if active:
        profile = config.profiles[active]
        layers.apply(
            profile.model_dump(include=profile.model_fields_set - {"dsn"}),
            f"profile: {active}",
        )

    for field_name, (value, env_var) in _libpq_env().items():
        layers.apply({field_name: value}, f"env: {env_var}")

    env_dsn = os.environ.get(DSN_ENV_VAR)
    if env_dsn:
        layers.apply(parse_dsn(env_dsn), f"env: {DSN_ENV_VAR}")
    if dsn:
        layers.apply(parse_dsn(dsn), "dsn")

    for cli_name, field_name in _CLI_FIELDS.items():
        value = cli_overrides.get(cli_name)
        if value is not None and field_name == "search_path":
            value = parse_search_path(value)
        layers.apply({field_name: value}, f"cli: --{cli_name}")

    try:
        return ResolvedConfig(
            **layers.values, active_profile=active, sources=layers.sources
        )
    except ValidationError as e:
        msg = f"Invalid connection settings: {e}"
        raise ConfigError(msg) from e


def resolve_gen_settings(
    config: AppConfig,
    query_globs: list[str] | None = None,
    schema_globs: list[str] | None = None,
    output_dir: Path | None = None,
    keep_going: bool | None = None,
) -> ResolvedGenSettings:
    """Merge gen command flags over the config file's [gen] table.

    A flag given on the command line replaces the configured value
    entirely; globs are not appended to the configured ones.
    """
    layers = _Layers()
    layers.apply(GenSettings().model_dump(), "default")
    layers.apply(config.gen.model_dump(exclude_defaults=True), "config")
    flags = {
        "query_globs": query_globs or None,
        "schema_globs": schema_globs or None,
        "output_dir": output_dir,
        "keep_going": keep_going,
    }
    for key, value in flags.items():
        layers.apply({key: value}, f"cli: {_GEN_FLAGS[key]}")
    return ResolvedGenSettings(**layers.values, sources=layers.sources)
