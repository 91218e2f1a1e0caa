"""Tests for the config subcommands."""

import pytest

CONFIG = """\
default_profile = "local"

[profiles.local]
url = "http://localhost:9000"
database = "master"
token = "abc"

[profiles.prod]
url = "https://sql.example.com"
"""


@pytest.fixture
def config_path(temp_dir):
    path = temp_dir / "config.toml"
    path.write_text(CONFIG)
    return str(path)


@pytest.mark.unit
def test_config_show(cli_runner, config_path):
    result = cli_runner("--config", config_path, "config", "show")
    assert result.exit_code == 0, result.output
    assert "url: http://localhost:9000 (profile: local)" in result.stdout
    assert "token: *** (profile: local)" in result.stdout
    assert "abc" not in result.stdout
    assert "Active Profile: local" in result.stdout


@pytest.mark.unit
def test_config_show_cli_override(cli_runner, config_path):
    result = cli_runner("--config", config_path, "--database", "other", "config", "show")
    assert "database: other (cli: --database)" in result.stdout


@pytest.mark.unit
def test_config_profiles(cli_runner, config_path):
    result = cli_runner("--config", config_path, "config", "profiles")
    assert result.exit_code == 0
    assert "* local (active)" in result.stdout
    assert "  prod" in result.stdout


@pytest.mark.unit
def test_config_profiles_empty(cli_runner, temp_dir):
    result = cli_runner("--config", str(temp_dir / "none.toml"), "config", "profiles")
    assert "No profiles configured." in result.stdout


@pytest.mark.unit
def test_config_show_initial_query(cli_runner, temp_dir):
    path = temp_dir / "config.toml"
    path.write_text('initial_query = "SELECT name\\nFROM sys.databases"\n')
    result = cli_runner("--config", str(path), "config", "show")
    assert result.exit_code == 0, result.output
    assert "initial_query: SELECT name" in result.stdout
    assert "Active Profile: none" in result.stdout


@pytest.mark.unit
def test_config_profiles_mask_token(cli_runner, config_path):
    result = cli_runner("--config", config_path, "config", "profiles")
    assert "token: ***" in result.stdout
    assert "abc" not in result.stdout
