"""Pytest configuration and shared fixtures for upstrap tests."""

import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterator

import pytest
import yaml


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        # Canonical, so link targets compare equal on systems where /tmp is a symlink.
        yield Path(tmp_dir).resolve()


@pytest.fixture
def dirs(temp_dir: Path) -> Dict[str, Path]:
    """Create empty from/to directories; the backup directory is left to the code under test."""
    paths = {
        "from": temp_dir / "dotfiles",
        "to": temp_dir / "home",
        "backup": temp_dir / "backup",
    }
    paths["from"].mkdir()
    paths["to"].mkdir()
    return paths


def write_yaml_file(file_path: Path, data: Dict[str, Any]) -> None:
    """Write data to YAML file.

    Args:
        file_path: Path to write file
        data: Data to write
    """
    with open(file_path, "w") as f:
        yaml.dump(data, f, default_flow_style=False)


def make_tree(root: Path, files: Dict[str, str]) -> None:
    """Create files with the given contents below root.

    Args:
        root: Directory to create files in
        files: Relative path -> file content
    """
    for rel_path, content in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


def set_env_vars(**env_vars: str) -> None:
    """Set environment variables.

    Args:
        **env_vars: Environment variables to set
    """
    for key, value in env_vars.items():
        os.environ[key] = value


def cleanup_env_vars(*var_names: str) -> None:
    """Clean up environment variables.

    Args:
        *var_names: Variable names to remove
    """
    for var_name in var_names:
        os.environ.pop(var_name, None)
