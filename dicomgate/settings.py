"""
Gateway configuration.

Values come from init arguments, ``DICOMGATE_``-prefixed environment variables,
then ``settings.toml`` / ``settings.custom.toml`` in the working directory.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from dicomgate.utils.validation import is_valid_uid


class Settings(BaseSettings):
    """Gateway settings: HTTP server, archive layout, DICOM nodes, timeouts and logging."""

    model_config = SettingsConfigDict(
        toml_file=["settings.toml", "settings.custom.toml"], env_prefix="DICOMGATE_", extra="ignore"
    )

    # Server settings
    port: int = 5001
    host: str = "0.0.0.0"
    root_url: str = "/"
    debug: bool = False

    # Storage settings
    storage_path: str = str(Path.home() / "dicomgate/data")
    transfer_syntax: str = "1.2.840.10008.1.2"  # WADO-URI target, Implicit VR Little Endian

    # Local DICOM node (store SCP)
    dicom_aet: str = "DICOMGATE"
    dicom_ip: str = "0.0.0.0"
    dicom_port: int = 8888
    dicom_max_pdu: int = 16384
    scp_enabled: bool = False

    # Archive peer
    pacs_aet: str = "PACS"
    pacs_host: str = "127.0.0.1"
    pacs_port: int = 4242

    # Engine timeouts in seconds
    find_timeout: float = 30.0
    transcode_timeout: float = 120.0
    echo_on_startup: bool = True

    # Logging settings
    log_level: str = "INFO"
    log_to_file: bool = False
    log_dir: str | None = None  # If None, will use {storage_path}/logs
    log_rotation: str = "20 MB"
    log_retention: str = "1 week"
    log_format: str | None = None  # Use default if None

    @field_validator("transfer_syntax")
    @classmethod
    def check_transfer_syntax(cls, value: str) -> str:
        if not is_valid_uid(value):
            raise ValueError(f"transfer_syntax must be a UID, got {value!r}")
        return value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize the sources for settings.

        Priority order: init arguments, environment variables, then TOML config files
        """
        return init_settings, env_settings, TomlConfigSettingsSource(settings_cls)

    @property
    def storage_root(self) -> Path:
        """Archive root directory as a Path."""
        return Path(self.storage_path)

    def get_log_dir(self) -> Path:
        """Get the log directory path.

        Returns:
            Path to the log directory. Uses log_dir if specified,
            otherwise creates logs directory in storage_path.
        """
        if self.log_dir:
            return Path(self.log_dir)
        return Path(self.storage_path) / "logs"


@lru_cache
def get_settings() -> Settings:
    """Get the settings instance, with caching.

    Returns:
        Cached Settings instance
    """
    return Settings()


# Create a global settings instance for easy imports
settings = get_settings()
