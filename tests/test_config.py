import pytest

from freshrss_filter.config import load_config, parse_cli_arguments
from freshrss_filter.errors import ConfigurationError
from freshrss_filter.models import RemediationMode

REQUIRED_ENV = {
    "FRF_OPENAI__API_KEY": "sk-env",
    "FRF_FRESHRSS__BASE_URL": "https://rss.example.com",
    "FRF_FRESHRSS__FEVER_API_KEY": "fever-env",
}

CONFIG_TOML = """
dry_run = false
concurrency = 3

[openai]
api_key = "sk-file"
model = "file-model"
threshold = 0.7

[freshrss]
base_url = "https://file.example.com"
fever_api_key = "fever-file"
delete_mode = "delete"

[scheduler]
cron = "0 0 * * * *"

[database]
path = "file.db"
"""

@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for key in [
        "FRF_OPENAI__API_KEY",
        "FRF_OPENAI__MODEL",
        "FRF_FRESHRSS__BASE_URL",
        "FRF_FRESHRSS__FEVER_API_KEY",
        "FRF_FRESHRSS__DELETE_MODE",
        "FRF_DRY_RUN",
        "FRF_CONCURRENCY",
    ]:
        monkeypatch.delenv(key, raising=False)

def set_env(monkeypatch, values):
    for key, value in values.items():
        monkeypatch.setenv(key, value)

def test_load_config_from_environment(monkeypatch):
    set_env(monkeypatch, REQUIRED_ENV)

    config = load_config(parse_cli_arguments([]))

    assert config.openai.api_key == "sk-env"
    assert config.openai.threshold == 0.5
    assert config.openai.model == "gpt-4o-mini"
    assert config.freshrss.base_url == "https://rss.example.com"
    assert config.scheduler.cron == "0 */10 * * * *"
    assert config.database.path == "freshrss-filter.db"
    assert config.remediation_mode == RemediationMode.MARK_READ
    assert config.dry_run is False
    assert config.concurrency == 5

def test_load_config_from_file(tmp_path):
    config_file = tmp_path / "custom.toml"
    config_file.write_text(CONFIG_TOML)

    config = load_config(parse_cli_arguments(["--config", str(config_file)]))

    assert config.openai.api_key == "sk-file"
    assert config.openai.threshold == 0.7
    assert config.freshrss.base_url == "https://file.example.com"
    assert config.remediation_mode == RemediationMode.SOFT_DELETE
    assert config.scheduler.cron == "0 0 * * * *"
    assert config.database.path == "file.db"
    assert config.concurrency == 3

def test_default_config_file_is_read(tmp_path):
    (tmp_path / "config.toml").write_text(CONFIG_TOML)

    config = load_config(parse_cli_arguments([]))

    assert config.openai.api_key == "sk-file"

def test_environment_overrides_file(tmp_path, monkeypatch):
    config_file = tmp_path / "custom.toml"
    config_file.write_text(CONFIG_TOML)
    set_env(monkeypatch, {"FRF_OPENAI__MODEL": "env-model", "FRF_CONCURRENCY": "8"})

    config = load_config(parse_cli_arguments(["--config", str(config_file)]))

    assert config.openai.model == "env-model"
    assert config.openai.api_key == "sk-file"
    assert config.concurrency == 8

def test_cli_dry_run_overrides(monkeypatch):
    set_env(monkeypatch, REQUIRED_ENV)

    config = load_config(parse_cli_arguments(["--dry-run"]))

    assert config.dry_run is True

def test_missing_required_values():
    with pytest.raises(ConfigurationError):
        load_config(parse_cli_arguments([]))

def test_missing_config_file():
    with pytest.raises(ConfigurationError):
        load_config(parse_cli_arguments(["--config", "does-not-exist.toml"]))

def test_label_mode_without_greader_credentials(monkeypatch):
    set_env(monkeypatch, {**REQUIRED_ENV, "FRF_FRESHRSS__DELETE_MODE": "label"})

    with pytest.raises(ConfigurationError):
        load_config(parse_cli_arguments([]))

@pytest.mark.parametrize(
    "argv, expected_once, expected_dry_run, expected_verbose",
    [
        ([], False, False, 0),
        (["--once"], True, False, 0),
        (["--once", "--dry-run", "-vv"], True, True, 2),
    ]
)
def test_parse_cli_arguments(argv, expected_once, expected_dry_run, expected_verbose):
    cli_args = parse_cli_arguments(argv)

    assert cli_args.once == expected_once
    assert cli_args.dry_run == expected_dry_run
    assert cli_args.verbose == expected_verbose
