"""Configuration system for pathspectre.
Supports TOML configuration files with project-level and user-level settings.
"""
from __future__ import annotations
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from pathspectre.analysis.path_manager import ExplorationStrategy
from pathspectre.analysis.state_merger import MergePolicy
from pathspectre.execution.explorer import ExplorationConfig
from pathspectre.logging import get_logger
CONFIG_FILES = [
    "pathspectre.toml",
    ".pathspectre.toml",
    "pyproject.toml",
]
STRATEGIES = {
    "bfs": ExplorationStrategy.BFS,
    "dfs": ExplorationStrategy.DFS,
}
MERGE_POLICIES = {
    "none": MergePolicy.NONE,
    "join": MergePolicy.JOIN,
}
@dataclass
class LimitsConfig:
    """Budgets for one function's exploration."""
    max_steps: int = 10000
    timeout_seconds: float | None = None
    solver_timeout_ms: int = 5000
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "max_steps": self.max_steps,
            "timeout_seconds": self.timeout_seconds,
            "solver_timeout_ms": self.solver_timeout_ms,
        }
@dataclass
class ExplorationSettings:
    """Configuration for exploration behavior."""
    strategy: str = "bfs"
    drop_dead_bindings: bool = True
    check_invariants: bool = False
    merge_policy: str = "none"
    merge_threshold: int = 8
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "strategy": self.strategy,
            "drop_dead_bindings": self.drop_dead_bindings,
            "check_invariants": self.check_invariants,
            "merge_policy": self.merge_policy,
            "merge_threshold": self.merge_threshold,
        }
@dataclass
class OutputConfig:
    """Configuration for output and reporting."""
    format: str = "text"
    color: bool = True
    verbose: bool = False
    quiet: bool = False
    show_states: bool = True
    show_summary: bool = False
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "format": self.format,
            "color": self.color,
            "verbose": self.verbose,
            "quiet": self.quiet,
            "show_states": self.show_states,
            "show_summary": self.show_summary,
        }
@dataclass
class ParallelConfig:
    """Concurrent exploration of independent functions."""
    max_workers: int = 4
    def to_dict(self) -> dict[str, Any]:
        return {"max_workers": self.max_workers}
@dataclass
class PathSpectreConfig:
    """Main configuration for pathspectre."""
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    exploration: ExplorationSettings = field(default_factory=ExplorationSettings)
    output: OutputConfig = field(default_factory=OutputConfig)
    parallel: ParallelConfig = field(default_factory=ParallelConfig)
    project_root: Path | None = None
    config_file: Path | None = None
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "limits": self.limits.to_dict(),
            "exploration": self.exploration.to_dict(),
            "output": self.output.to_dict(),
            "parallel": self.parallel.to_dict(),
        }
    def to_toml(self) -> str:
        """Generate TOML configuration string."""
        lines = ["[tool.pathspectre]"]
        for section, values in self.to_dict().items():
            lines.append("")
            lines.append(f"[tool.pathspectre.{section}]")
            for key, value in values.items():
                if value is None:
                    continue
                lines.append(f"{key} = {_toml_value(value)}")
        return "\n".join(lines) + "\n"
    def to_exploration_config(self) -> ExplorationConfig:
        """Settings for the explorer. Unknown names fall back to the defaults."""
        logger = get_logger()
        strategy = STRATEGIES.get(self.exploration.strategy.lower())
        if strategy is None:
            logger.warning(f"Unknown strategy {self.exploration.strategy!r}, using bfs")
            strategy = ExplorationStrategy.BFS
        policy = MERGE_POLICIES.get(self.exploration.merge_policy.lower())
        if policy is None:
            logger.warning(f"Unknown merge policy {self.exploration.merge_policy!r}, using none")
            policy = MergePolicy.NONE
        return ExplorationConfig(
            max_steps=self.limits.max_steps,
            strategy=strategy,
            drop_dead_bindings=self.exploration.drop_dead_bindings,
            check_invariants=self.exploration.check_invariants,
            merge_policy=policy,
            merge_threshold=self.exploration.merge_threshold,
            solver_timeout_ms=self.limits.solver_timeout_ms,
            timeout_seconds=self.limits.timeout_seconds,
        )
def _toml_value(value: Any) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, list):
        return "[" + ", ".join(_toml_value(v) for v in value) + "]"
    return str(value)
def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Find configuration file by walking up directory tree.
    A ``pyproject.toml`` only counts if it has a ``[tool.pathspectre]`` table.
    """
    if start_dir is None:
        start_dir = Path.cwd()
    current = start_dir.resolve()
    while True:
        for config_name in CONFIG_FILES:
            config_path = current / config_name
            if config_path.is_file() and _is_relevant(config_path):
                return config_path
        if current == current.parent:
            break
        current = current.parent
    home = Path.home()
    for config_name in [".pathspectre.toml", "pathspectre.toml"]:
        config_path = home / config_name
        if config_path.is_file():
            return config_path
    return None
def _is_relevant(config_path: Path) -> bool:
    if config_path.name != "pyproject.toml":
        return True
    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        return False
    return "pathspectre" in data.get("tool", {})
def load_config(
    config_path: Path | None = None,
    start_dir: Path | None = None,
) -> PathSpectreConfig:
    """Load configuration from file or use defaults.
    Args:
        config_path: Explicit path to config file
        start_dir: Directory to start searching for config
    Returns:
        Loaded configuration; defaults if no file is found or it fails to parse.
    """
    config = PathSpectreConfig()
    if config_path is None:
        config_path = find_config_file(start_dir)
    if config_path is None or not config_path.exists():
        return config
    config.config_file = config_path
    config.project_root = config_path.parent
    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        get_logger().warning(f"Failed to parse config file {config_path}: {e}")
        return config
    if config_path.name == "pyproject.toml":
        section = data.get("tool", {}).get("pathspectre", {})
    else:
        section = data.get("tool", {}).get("pathspectre", data)
    _apply_config(config, section)
    return config
def _apply_config(config: PathSpectreConfig, data: dict[str, Any]) -> None:
    """Apply configuration data to config object."""
    sections = {
        "limits": config.limits,
        "exploration": config.exploration,
        "output": config.output,
        "parallel": config.parallel,
    }
    logger = get_logger()
    for name, values in data.items():
        target = sections.get(name)
        if target is None or not isinstance(values, dict):
            logger.warning(f"Ignoring unknown config section {name!r}")
            continue
        for key, value in values.items():
            if not hasattr(target, key):
                logger.warning(f"Ignoring unknown config key {name}.{key}")
                continue
            setattr(target, key, value)
def generate_default_config() -> str:
    """Generate default configuration file content."""
    return PathSpectreConfig().to_toml()
def init_config(directory: Path | None = None) -> Path:
    """Initialize a new configuration file in the given directory.
    Args:
        directory: Directory to create config in (default: current)
    Returns:
        Path to created config file
    Raises:
        FileExistsError: If the directory already has a pathspectre.toml.
    """
    if directory is None:
        directory = Path.cwd()
    config_path = directory / "pathspectre.toml"
    if config_path.exists():
        raise FileExistsError(f"Config file already exists: {config_path}")
    config_path.write_text(generate_default_config(), encoding="utf-8")
    return config_path
__all__ = [
    "PathSpectreConfig",
    "LimitsConfig",
    "ExplorationSettings",
    "OutputConfig",
    "ParallelConfig",
    "CONFIG_FILES",
    "load_config",
    "find_config_file",
    "generate_default_config",
    "init_config",
]
