"""Tests for configuration loading."""

import pytest

from pathspectre.analysis.path_manager import ExplorationStrategy
from pathspectre.analysis.state_merger import MergePolicy
from pathspectre.config import (
    PathSpectreConfig,
    find_config_file,
    generate_default_config,
    init_config,
    load_config,
)


def status_messages(logger):
    return [entry.message for entry in logger.get_entries(category="status")]


class TestDefaults:
    def test_defaults(self):
        config = PathSpectreConfig()
        assert config.limits.max_steps == 10000
        assert config.exploration.strategy == "bfs"
        assert config.exploration.merge_policy == "none"
        assert config.output.format == "text"
        assert config.parallel.max_workers == 4

    def test_exploration_config(self):
        explored = PathSpectreConfig().to_exploration_config()
        assert explored.strategy is ExplorationStrategy.BFS
        assert explored.merge_policy is MergePolicy.NONE
        assert explored.max_steps == 10000
        assert explored.drop_dead_bindings

    def test_default_toml_skips_unset_values(self):
        text = generate_default_config()
        assert text.startswith("[tool.pathspectre]\n")
        assert "[tool.pathspectre.limits]" in text
        assert "timeout_seconds" not in text


class TestLoading:
    def test_round_trip(self, tmp_path):
        config = PathSpectreConfig()
        config.limits.max_steps = 250
        config.exploration.strategy = "dfs"
        config.output.color = False
        path = tmp_path / "pathspectre.toml"
        path.write_text(config.to_toml(), encoding="utf-8")
        loaded = load_config(config_path=path)
        assert loaded.to_dict() == config.to_dict()
        assert loaded.config_file == path
        assert loaded.project_root == tmp_path

    def test_bare_sections(self, tmp_path):
        path = tmp_path / "pathspectre.toml"
        path.write_text("[exploration]\nmerge_policy = \"join\"\nmerge_threshold = 2\n")
        loaded = load_config(config_path=path).to_exploration_config()
        assert loaded.merge_policy is MergePolicy.JOIN
        assert loaded.merge_threshold == 2

    def test_pyproject_section(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text(
            "[project]\nname = \"demo\"\n\n[tool.pathspectre.limits]\nmax_steps = 42\n"
        )
        nested = tmp_path / "src" / "pkg"
        nested.mkdir(parents=True)
        assert find_config_file(nested) == tmp_path / "pyproject.toml"
        assert load_config(start_dir=nested).limits.max_steps == 42

    def test_unrelated_pyproject_is_skipped(self, tmp_path):
        project = tmp_path / "project"
        project.mkdir()
        (project / "pyproject.toml").write_text("[project]\nname = \"demo\"\n")
        (tmp_path / "pathspectre.toml").write_text("[limits]\nmax_steps = 7\n")
        assert find_config_file(project) == tmp_path / "pathspectre.toml"

    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(config_path=tmp_path / "absent.toml")
        assert config.config_file is None
        assert config.to_dict() == PathSpectreConfig().to_dict()

    def test_bad_toml_gives_defaults_and_a_warning(self, tmp_path, quiet_logger):
        path = tmp_path / "pathspectre.toml"
        path.write_text("[limits\nmax_steps = ")
        config = load_config(config_path=path)
        assert config.limits.max_steps == 10000
        assert any("Failed to parse config file" in m for m in status_messages(quiet_logger))

    def test_unknown_entries_are_ignored(self, tmp_path, quiet_logger):
        path = tmp_path / "pathspectre.toml"
        path.write_text("[reports]\nx = 1\n\n[limits]\nmax_steps = 3\nmax_paths = 9\n")
        config = load_config(config_path=path)
        assert config.limits.max_steps == 3
        messages = status_messages(quiet_logger)
        assert "Ignoring unknown config section 'reports'" in messages
        assert "Ignoring unknown config key limits.max_paths" in messages

    def test_unknown_strategy_falls_back(self, quiet_logger):
        config = PathSpectreConfig()
        config.exploration.strategy = "random"
        config.exploration.merge_policy = "widen"
        explored = config.to_exploration_config()
        assert explored.strategy is ExplorationStrategy.BFS
        assert explored.merge_policy is MergePolicy.NONE
        assert len(status_messages(quiet_logger)) == 2


class TestInit:
    def test_creates_a_loadable_file(self, tmp_path):
        path = init_config(tmp_path)
        assert path == tmp_path / "pathspectre.toml"
        assert load_config(config_path=path).to_dict() == PathSpectreConfig().to_dict()

    def test_refuses_to_overwrite(self, tmp_path):
        init_config(tmp_path)
        with pytest.raises(FileExistsError):
            init_config(tmp_path)
