"""Configuration loading and validation for docweave runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from fnmatch import translate as glob_translate
from pathlib import Path
from typing import Any, Optional

import yaml

from docweave.errors import ConfigError


UNIX = "\n"
WINDOWS = "\r\n"
LINE_SEPARATOR_NAMES = {"unix": UNIX, "windows": WINDOWS}

TOC_SCOPES = ("document", "module")

# Default paths for config lookup
DEFAULT_CONFIG_PATH = "docweave.yaml"
FALLBACK_CONFIG_PATH = ".docweave/config.yaml"

DEFAULT_INCLUDE = ("**/*.md", "**/*.py")
DEFAULT_EXCLUDE = (
    "**/build/**",
    "**/dist/**",
    "**/.git/**",
    "**/.venv/**",
    "**/__pycache__/**",
    "**/node_modules/**",
    "**/.pytest_cache/**",
)
DEFAULT_SAMPLE_HEADER = "This file was automatically generated from {source}. Do not edit."


@dataclass(frozen=True)
class TocConfig:
    """Table-of-contents configuration."""

    scope: str = "document"  # document, module
    min_level: int = 2
    max_level: int = 6
    bullet: str = "*"


@dataclass(frozen=True)
class SampleConfig:
    """Sample extraction and runnable file configuration."""

    header: str = DEFAULT_SAMPLE_HEADER
    prelude: tuple[str, ...] = ()
    hide_marker: str = "docweave:hide"
    range_start: str = "START-"
    range_end: str = "END-"


@dataclass(frozen=True)
class ModuleSpec:
    """An explicitly configured module."""

    name: str
    root: str
    docs_url: Optional[str] = None


@dataclass(frozen=True)
class ModulesConfig:
    """Module discovery configuration."""

    roots: tuple[str, ...] = ()
    markers: tuple[str, ...] = ("pyproject.toml", "setup.py", "setup.cfg")
    site_root: Optional[str] = None
    modules: tuple[ModuleSpec, ...] = ()
    docs_path: Optional[str] = None  # generated docs, relative to each module root


@dataclass(frozen=True)
class WeaveConfig:
    """Complete docweave configuration, passed once into a run."""

    version: str = "1.0"
    root_dir: str = "."
    line_separator: str = UNIX
    include: tuple[str, ...] = DEFAULT_INCLUDE
    exclude: tuple[str, ...] = DEFAULT_EXCLUDE
    workers: int = 1
    toc: TocConfig = field(default_factory=TocConfig)
    samples: SampleConfig = field(default_factory=SampleConfig)
    modules: ModulesConfig = field(default_factory=ModulesConfig)

    @property
    def root_path(self) -> Path:
        return Path(self.root_dir).resolve()


def get_default_config() -> WeaveConfig:
    """Return the default docweave configuration."""
    return WeaveConfig()


def normalize_line_separator(value: Any, config_file: Optional[str] = None) -> str:
    """Map a configured line separator to its literal value.

    Raises:
        ConfigError: If the value is neither Unix nor Windows.
    """
    if isinstance(value, str):
        if value in (UNIX, WINDOWS):
            return value
        if value.lower() in LINE_SEPARATOR_NAMES:
            return LINE_SEPARATOR_NAMES[value.lower()]
    raise ConfigError(
        f"line_separator must be one of: Unix (\\n), Windows (\\r\\n); got {value!r}",
        file=config_file,
        error_type="config_invalid",
    )


def _as_tuple(value: Any, key: str, config_file: Optional[str]) -> tuple[str, ...]:
    """Coerce a YAML scalar or list into a tuple of strings."""
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list):
        raise ConfigError(
            f"'{key}' must be a list of strings",
            file=config_file,
            error_type="config_invalid",
        )
    return tuple(str(item) for item in value)


def _parse_toc(toc_dict: dict[str, Any]) -> TocConfig:
    """Parse ToC configuration."""
    defaults = TocConfig()
    return TocConfig(
        scope=toc_dict.get("scope", defaults.scope),
        min_level=toc_dict.get("min_level", defaults.min_level),
        max_level=toc_dict.get("max_level", defaults.max_level),
        bullet=toc_dict.get("bullet", defaults.bullet),
    )


def _parse_samples(samples_dict: dict[str, Any], config_file: Optional[str]) -> SampleConfig:
    """Parse sample configuration."""
    defaults = SampleConfig()
    return SampleConfig(
        header=samples_dict.get("header", defaults.header),
        prelude=_as_tuple(samples_dict.get("prelude"), "samples.prelude", config_file),
        hide_marker=samples_dict.get("hide_marker", defaults.hide_marker),
        range_start=samples_dict.get("range_start", defaults.range_start),
        range_end=samples_dict.get("range_end", defaults.range_end),
    )


def _parse_module_spec(spec_dict: Any, config_file: Optional[str]) -> ModuleSpec:
    """Parse an explicit module entry."""
    if not isinstance(spec_dict, dict) or not spec_dict.get("name") or not spec_dict.get("root"):
        raise ConfigError(
            "Each entry in modules.modules needs a 'name' and a 'root'",
            file=config_file,
            error_type="config_invalid",
        )
    return ModuleSpec(
        name=str(spec_dict["name"]),
        root=str(spec_dict["root"]),
        docs_url=spec_dict.get("docs_url"),
    )


def _parse_modules(modules_dict: dict[str, Any], config_file: Optional[str]) -> ModulesConfig:
    """Parse module configuration."""
    defaults = ModulesConfig()
    markers = modules_dict.get("markers")
    return ModulesConfig(
        roots=_as_tuple(modules_dict.get("roots"), "modules.roots", config_file),
        markers=defaults.markers if markers is None
        else _as_tuple(markers, "modules.markers", config_file),
        site_root=modules_dict.get("site_root", defaults.site_root),
        docs_path=modules_dict.get("docs_path", defaults.docs_path),
        modules=tuple(
            _parse_module_spec(spec, config_file)
            for spec in modules_dict.get("modules") or []
        ),
    )


def _validate_glob(pattern: str, config_file: Optional[str] = None) -> None:
    """Validate a module marker pattern."""
    if not pattern or "/" in pattern:
        raise ConfigError(
            f"Invalid module marker pattern '{pattern}': must be a non-empty file name pattern",
            file=config_file,
            error_type="config_invalid",
        )
    try:
        glob_translate(pattern)
    except Exception as e:
        raise ConfigError(
            f"Invalid module marker pattern '{pattern}': {e}",
            file=config_file,
            error_type="config_invalid",
        )
    if pattern.count("[") != pattern.count("]"):
        raise ConfigError(
            f"Invalid module marker pattern '{pattern}': unclosed bracket",
            file=config_file,
            error_type="config_invalid",
        )


def validate_config(config: WeaveConfig, config_file: Optional[str] = None) -> None:
    """Validate configuration values.

    Raises:
        ConfigError: If configuration is invalid.
    """
    normalize_line_separator(config.line_separator, config_file)

    if config.toc.scope not in TOC_SCOPES:
        raise ConfigError(
            f"Unknown toc scope: {config.toc.scope}",
            file=config_file,
            error_type="config_invalid",
        )
    if not 1 <= config.toc.min_level <= config.toc.max_level <= 6:
        raise ConfigError(
            f"Invalid toc levels: min_level={config.toc.min_level}, max_level={config.toc.max_level}",
            file=config_file,
            error_type="config_invalid",
        )

    if not isinstance(config.workers, int) or config.workers < 1:
        raise ConfigError(
            f"workers must be a positive integer, got {config.workers!r}",
            file=config_file,
            error_type="config_invalid",
        )

    samples = config.samples
    if not samples.range_start or not samples.range_end or samples.range_start == samples.range_end:
        raise ConfigError(
            "samples.range_start and samples.range_end must be non-empty and distinct",
            file=config_file,
            error_type="config_invalid",
        )
    if not samples.hide_marker:
        raise ConfigError(
            "samples.hide_marker must be non-empty",
            file=config_file,
            error_type="config_invalid",
        )

    for pattern in config.modules.markers:
        _validate_glob(pattern, config_file)

    docs_path = config.modules.docs_path
    if docs_path is not None and (not docs_path or Path(docs_path).is_absolute()):
        raise ConfigError(
            f"modules.docs_path must be a relative directory, got {docs_path!r}",
            file=config_file,
            error_type="config_invalid",
        )

    seen: set[str] = set()
    for spec in config.modules.modules:
        if spec.name in seen:
            raise ConfigError(
                f"Duplicate module name: {spec.name}",
                file=config_file,
                error_type="config_invalid",
            )
        seen.add(spec.name)


def load_config(config_path: Path | str) -> WeaveConfig:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to the docweave.yaml file.

    Returns:
        WeaveConfig with loaded values merged with defaults.

    Raises:
        ConfigError: If the file exists but contains invalid configuration.
    """
    config_path = Path(config_path)
    config_file = str(config_path)

    defaults = get_default_config()

    if not config_path.exists():
        return defaults

    try:
        content = config_path.read_text(encoding="utf-8")
        if not content.strip():
            return defaults

        data = yaml.safe_load(content)
        if not data:
            return defaults
        if not isinstance(data, dict):
            raise ConfigError(
                "Top-level docweave config must be a mapping",
                file=config_file,
                error_type="config_invalid",
            )

    except yaml.YAMLError as e:
        line = None
        mark = getattr(e, "problem_mark", None)
        if mark is not None:
            line = mark.line + 1
        raise ConfigError(
            f"Invalid YAML: {e}",
            file=config_file,
            line=line,
            error_type="config_invalid",
        )

    # Relative root_dir is taken relative to the config file
    root_dir = data.get("root_dir")
    if root_dir is None:
        root_dir = str(config_path.parent)
    elif not Path(root_dir).is_absolute():
        root_dir = str(config_path.parent / root_dir)

    config = WeaveConfig(
        version=str(data.get("version", defaults.version)),
        root_dir=root_dir,
        line_separator=normalize_line_separator(
            data.get("line_separator", defaults.line_separator), config_file
        ),
        include=_as_tuple(data["include"], "include", config_file)
        if "include" in data else defaults.include,
        exclude=_as_tuple(data["exclude"], "exclude", config_file)
        if "exclude" in data else defaults.exclude,
        workers=data.get("workers", defaults.workers),
        toc=_parse_toc(data.get("toc") or {}),
        samples=_parse_samples(data.get("samples") or {}, config_file),
        modules=_parse_modules(data.get("modules") or {}, config_file),
    )

    validate_config(config, config_file)

    return config
