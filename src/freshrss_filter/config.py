import logging
from argparse import ArgumentParser, Namespace as ArgNamespace
from pathlib import Path
from typing import List, Optional, Tuple, Type

from dotenv import load_dotenv
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict, TomlConfigSettingsSource

from freshrss_filter.errors import ConfigurationError
from freshrss_filter.models import AppConfig, AppEnvSettings, RemediationMode

# Config file read when `--config` is not given.
DEFAULT_CONFIG_FILE = "config.toml"

def parse_cli_arguments(argv: Optional[List[str]] = None) -> ArgNamespace:
    """
    Parse the command line arguments.
    """
    parser = ArgumentParser(
        prog="freshrss-filter",
        description="Classify and remove ads from FreshRSS using an LLM.",
    )
    parser.add_argument(
        "-c", "--config",
        type=str,
        help=f"Path to the TOML config file. Defaults to `{DEFAULT_CONFIG_FILE}` if present.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Detect ads without marking, labeling or deleting items.",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run once and exit instead of running on the cron schedule.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity.",
    )
    return parser.parse_args(argv)

def settings_class_for(config_file: Path) -> Type[AppEnvSettings]:
    """
    Build a settings class that reads `config_file` with lower priority than the environment.
    """
    class FileAppEnvSettings(AppEnvSettings):
        model_config = SettingsConfigDict(toml_file=config_file)

        @classmethod
        def settings_customise_sources(
                cls,
                settings_cls: Type[BaseSettings],
                init_settings: PydanticBaseSettingsSource,
                env_settings: PydanticBaseSettingsSource,
                dotenv_settings: PydanticBaseSettingsSource,
                file_secret_settings: PydanticBaseSettingsSource,
            ) -> Tuple[PydanticBaseSettingsSource, ...]:
            return (
                init_settings,
                env_settings,
                dotenv_settings,
                TomlConfigSettingsSource(settings_cls),
                file_secret_settings,
            )

    return FileAppEnvSettings

def load_config(cli_args: Optional[ArgNamespace] = None) -> AppConfig:
    """
    Load the configuration from the config file, `.env`, the environment and the CLI arguments.
    """
    load_dotenv(verbose=True)
    if cli_args is None:
        cli_args = parse_cli_arguments()

    if cli_args.config:
        config_file = Path(cli_args.config)
        if not config_file.is_file():
            raise ConfigurationError(f"Config file \"{config_file}\" not found.")
    else:
        config_file = Path(DEFAULT_CONFIG_FILE)
    if config_file.is_file():
        logging.info(f"Loading config from \"{config_file}\"")

    try:
        env_settings = settings_class_for(config_file)()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    config = AppConfig(
        openai=env_settings.openai,
        freshrss=env_settings.freshrss,
        scheduler=env_settings.scheduler,
        database=env_settings.database,
        dry_run=cli_args.dry_run or env_settings.dry_run,
        concurrency=env_settings.concurrency,
        remediation_mode=RemediationMode.from_delete_mode(env_settings.freshrss.delete_mode),
    )
    logging.info(f"Config loaded: {config!r}")
    return config
