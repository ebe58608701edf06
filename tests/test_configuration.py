"""Test cases for loading and validating upstrap configuration files."""

from pathlib import Path

import pytest

from upstrap import ConfigValidationError, UpConfig
from upstrap.config import default_config_path, load_config_file
from upstrap.exceptions import ConfigLoadError, ConfigOverrideError, EnvLookupError
from tests.conftest import write_yaml_file


def test_files_and_overrides_apply_in_order(temp_dir: Path):
    """Test building a config from several sources.

    Given a base file, an override file and command line overrides in between
    When the config is built
    Then later sources win and nested sections are merged
    """
    base_path = temp_dir / "base.yaml"
    write_yaml_file(
        base_path,
        {
            "inherit_env": ["HOME"],
            "env": {"DOTFILES": "~/code/dotfiles", "BACKUP": "~/backup"},
            "link": {"from_dir": "$DOTFILES", "to_dir": "~"},
        },
    )
    override_path = temp_dir / "override.yaml"
    write_yaml_file(override_path, {"env": {"BACKUP": "/tmp/backup"}})

    config = UpConfig.from_sources(
        [str(base_path), "link.backup_dir=$BACKUP", str(override_path), "link.exclude=[.git]"]
    )

    assert config.inherit_env == ["HOME"]
    assert config.env == {"DOTFILES": "~/code/dotfiles", "BACKUP": "/tmp/backup"}
    assert config.to_dict()["link"] == {
        "from_dir": "$DOTFILES",
        "to_dir": "~",
        "backup_dir": "$BACKUP",
        "exclude": [".git"],
    }


def test_link_config_is_expanded_against_resolved_env():
    """Test resolving link directories.

    Given link directories that use config env variables and `~`
    When the env is resolved and the link config built
    Then all three directories are fully expanded
    """
    config = UpConfig(
        {
            "inherit_env": ["USER"],
            "env": {"CODE": "~/code", "DOTFILES": "$CODE/dotfiles-$USER"},
            "link": {"from_dir": "$DOTFILES", "to_dir": "~", "backup_dir": "${CODE}/backup"},
        }
    )

    env = config.resolve_env(environ={"USER": "u"}, home_dir="/home/u")
    link = config.link_config(env, home_dir="/home/u")

    assert link.from_dir == "/home/u/code/dotfiles-u"
    assert link.to_dir == "/home/u"
    assert link.backup_dir == "/home/u/code/backup"
    assert link.exclude == []


def test_link_config_defaults():
    link = UpConfig({}).link_config({}, home_dir="/home/u")

    assert link.from_dir == "/home/u/code/dotfiles"
    assert link.to_dir == "/home/u"
    assert link.backup_dir == "/home/u/backup"


def test_link_config_unknown_variable():
    config = UpConfig({"link": {"from_dir": "$NOT_DEFINED/dotfiles"}})
    with pytest.raises(EnvLookupError):
        config.link_config({}, home_dir="/home/u")


def test_validation_collects_all_errors():
    """Test structural validation.

    Given a config with an unknown section, a non-string env value and a bad link field
    When the config object is created
    Then one error lists every problem
    """
    with pytest.raises(ConfigValidationError) as exc_info:
        UpConfig(
            {
                "inherit_env": "HOME",
                "env": {"PORT": 8080},
                "link": {"from_dir": ["a"], "target": "x"},
                "git": {},
            }
        )

    message = str(exc_info.value)
    assert len(exc_info.value.errors) == 5
    assert "Parameters: git" in message
    assert "Parameter: inherit_env" in message
    assert "Parameter: env.PORT" in message
    assert "Parameter: link.from_dir" in message
    assert "Parameters: target" in message


def test_empty_and_invalid_files(temp_dir: Path):
    empty = temp_dir / "empty.yaml"
    empty.write_text("")
    assert load_config_file(empty) == {}

    not_mapping = temp_dir / "list.yaml"
    not_mapping.write_text("- a\n- b\n")
    with pytest.raises(ConfigLoadError):
        load_config_file(not_mapping)

    broken = temp_dir / "broken.yaml"
    broken.write_text("env: [unclosed\n")
    with pytest.raises(ConfigLoadError):
        load_config_file(broken)

    with pytest.raises(ConfigLoadError):
        load_config_file(temp_dir / "missing.yaml")


def test_default_config_path():
    assert default_config_path({"XDG_CONFIG_HOME": "/xdg"}) == Path("/xdg/up/up.yaml")
    assert default_config_path({}).parts[-3:] == (".config", "up", "up.yaml")


def test_invalid_override_value():
    with pytest.raises(ConfigOverrideError) as exc_info:
        UpConfig.from_sources(["link.exclude=[.git"])
    assert exc_info.value.override == "link.exclude=[.git"


def test_empty_sections_are_treated_as_absent():
    """Test sections and list fields that load as None.

    Given `env`, `link` and `link.exclude` left empty in YAML
    When the config is built and the link config resolved
    Then validation passes and the defaults are used
    """
    config = UpConfig({"inherit_env": None, "env": None, "link": {"to_dir": "/target", "exclude": None}})

    link = config.link_config(config.resolve_env(environ={}), home_dir="/home/u")

    assert config.inherit_env == []
    assert config.env == {}
    assert link.from_dir == "/home/u/code/dotfiles"
    assert link.to_dir == "/target"
    assert link.exclude == []


def test_empty_string_field_is_still_a_type_error():
    with pytest.raises(ConfigValidationError) as exc_info:
        UpConfig({"link": {"from_dir": None}})
    assert "Parameter: link.from_dir" in str(exc_info.value)
