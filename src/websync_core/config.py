"""Configuration parsing for websync."""

import logging
import shlex
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from websync_core.browser import DEFAULT_DEBUG_PORT, DEFAULT_TIMEOUT
from websync_core.handlers import BuildStep
from websync_core.watchers import WatchBinding

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "websync.toml"

# Files that mark a web project root
PROJECT_MARKERS = (CONFIG_FILE_NAME, "web.config")

# Conventional project layout: directory -> patterns
CONVENTIONAL_LAYOUT = {
    "bin": ("*.dll",),
    "css": ("*.scss",),
    "js": ("*.js", "*.ts"),
    "Views": ("*.cshtml",),
}

DEFAULT_TYPESCRIPT_COMMAND = "tsc --project {project_dir}"
DEFAULT_SASS_COMMAND = "sass --update {project_dir}/css"

DEFAULT_CONFIG_TEMPLATE = """\
# Auto-generated websync.toml

[project]
dir = "."
domain = "localhost"
idle_ms = 300

[browser]
debug_port = 9222
timeout = 5.0

[build]
typescript = true
typescript_command = "tsc --project {project_dir}"
sass = true
sass_command = "sass --update {project_dir}/css"

# Pattern -> directory. Leave empty to use the conventional layout
# (bin/*.dll, css/*.scss, js/*.js, js/*.ts, Views/*.cshtml).
[watch]
"""


@dataclass
class WebSyncConfig:
    """Settings for one watch session."""

    project_dir: Path = field(default_factory=Path.cwd)
    domain: str = "localhost"
    """Browser tabs domain to refresh."""

    idle_ms: int = 300
    """Minimum milliseconds between two accepted change notifications."""

    debug_port: int = DEFAULT_DEBUG_PORT
    timeout: float = DEFAULT_TIMEOUT
    """Seconds allowed for discovery and each tab's WebSocket exchange."""

    typescript: bool = True
    typescript_command: str = DEFAULT_TYPESCRIPT_COMMAND
    sass: bool = True
    sass_command: str = DEFAULT_SASS_COMMAND

    watch: dict[str, str] = field(default_factory=dict)
    """Pattern -> directory. Empty means use the conventional layout."""

    def build_steps(self) -> list[BuildStep]:
        """Enabled build steps in dispatch priority order."""
        steps = []
        if self.typescript:
            steps.append(
                BuildStep("TypeScript", ".ts", _split_command(self.typescript_command, self.project_dir), self.project_dir)
            )
        if self.sass:
            steps.append(BuildStep("Sass", ".scss", _split_command(self.sass_command, self.project_dir), self.project_dir))
        return steps

    def watch_bindings(self) -> list[WatchBinding]:
        """Bindings from the explicit mapping, or from the conventional layout."""
        if self.watch:
            return bindings_from_mapping(self.watch, self.project_dir)
        return discover_bindings(self.project_dir)


def _split_command(template: str, project_dir: Path) -> tuple[str, ...]:
    return tuple(shlex.split(template.format(project_dir=project_dir.as_posix())))


def bindings_from_mapping(mapping: Mapping[str, str], base_dir: Path) -> list[WatchBinding]:
    """Build bindings from a pattern -> directory mapping.

    Patterns pointing at the same directory share one binding.
    """
    grouped: dict[Path, list[str]] = {}
    for pattern, directory in mapping.items():
        root = (base_dir / directory).resolve()
        grouped.setdefault(root, []).append(pattern)

    return [WatchBinding(root=root, patterns=tuple(patterns), source="config") for root, patterns in grouped.items()]


def discover_bindings(project_dir: Path) -> list[WatchBinding]:
    """Bind every conventional resource directory that exists in the project.

    Raises:
        ValueError: If the project contains no resource supported for watching
    """
    bindings = [
        WatchBinding(root=project_dir / name, patterns=patterns, source=name)
        for name, patterns in CONVENTIONAL_LAYOUT.items()
        if (project_dir / name).is_dir()
    ]
    if not bindings:
        raise ValueError(f"No resource supported for watching found in {project_dir}")
    return bindings


def find_project_root(start: Path) -> Path | None:
    """Walk up from start looking for a project marker in a directory or its Web/ child."""
    for directory in (start, *start.parents):
        for candidate in (directory, directory / "Web"):
            if any((candidate / marker).is_file() for marker in PROJECT_MARKERS):
                return candidate
    return None


def load_config(path: str | Path) -> WebSyncConfig:
    """Load a websync.toml file.

    Args:
        path: Path to TOML config file

    Returns:
        WebSyncConfig with relative directories resolved against the file's directory

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not valid TOML or has invalid values
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}\nRun 'websync --init' to create a default config.")

    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Failed to parse config file {path}: {e}") from e

    project = raw.get("project", {})
    browser = raw.get("browser", {})
    build = raw.get("build", {})
    watch = raw.get("watch", {})

    if not all(isinstance(v, str) for v in watch.values()):
        raise ValueError(f"[watch] entries in {path} must map a pattern to a directory")

    try:
        config = WebSyncConfig(
            project_dir=(path.parent / project.get("dir", ".")).resolve(),
            domain=project.get("domain", "localhost"),
            idle_ms=int(project.get("idle_ms", 300)),
            debug_port=int(browser.get("debug_port", DEFAULT_DEBUG_PORT)),
            timeout=float(browser.get("timeout", DEFAULT_TIMEOUT)),
            typescript=bool(build.get("typescript", True)),
            typescript_command=build.get("typescript_command", DEFAULT_TYPESCRIPT_COMMAND),
            sass=bool(build.get("sass", True)),
            sass_command=build.get("sass_command", DEFAULT_SASS_COMMAND),
            watch=dict(watch),
        )
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid value in config file {path}: {e}") from e

    if config.idle_ms < 0:
        raise ValueError(f"idle_ms must not be negative in {path}")

    logger.debug(f"Loaded config from {path}")
    return config


def create_default_config(config_path: Path) -> bool:
    """
    Create a default websync.toml if it doesn't exist.

    Returns:
        True if config was created, False if it already exists
    """
    if config_path.exists():
        return False

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(DEFAULT_CONFIG_TEMPLATE)
    return True
