# biblio_export/infrastructure/config/_models.py

"""Pydantic models for configuration with validation"""

# Standard library imports
from logging import getLogger
from pathlib import Path

# Third party imports
from pydantic import BaseModel
from pydantic import Field
from pydantic import field_validator
from pydantic import model_validator

# Local imports
from biblio_export.core.types.json import JSONDict

logger = getLogger(__name__)


class RetryConfig(BaseModel):
    """Backoff settings for transient repository failures"""

    max_attempts: int = Field(4, ge=1, le=20, description="Attempts including the first")
    base_delay: float = Field(0.5, ge=0, description="Delay before the first retry (seconds)")
    multiplier: float = Field(2.0, ge=1, description="Growth factor between retries")
    max_delay: float = Field(10.0, ge=0, description="Upper bound for a single delay")

    @model_validator(mode="after")
    def check_delays(self) -> "RetryConfig":
        """Max delay cannot undercut the base delay"""
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        return self


class ClientConfig(BaseModel):
    """Metadata repository client configuration"""

    graphql_url: str = Field(
        "https://api.thoth.pub/graphql", description="GraphQL endpoint of the repository"
    )
    timeout: float = Field(30.0, gt=0, description="Per-request timeout (seconds)")
    page_size: int = Field(100, gt=0, le=1000, description="Works per catalogue page")
    max_connections: int = Field(8, ge=1, description="Connection pool size")
    pool_timeout: float = Field(5.0, gt=0, description="Wait for a free connection (seconds)")
    retry: RetryConfig = Field(default_factory=RetryConfig)

    @field_validator("graphql_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"graphql_url must be an http(s) URL, got {v}")
        return v


class ProcessingConfig(BaseModel):
    """Export processing configuration"""

    max_workers: int | None = Field(None, ge=1, description="Number of worker threads")
    request_timeout: float | None = Field(
        300.0, gt=0, description="Wall-clock budget per request (seconds)"
    )
    default_combined: bool = Field(
        True, description="Produce one combined document for batch exports"
    )

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: int | None) -> int | None:
        """Ensure max_workers is reasonable"""
        if v is not None and v > 128:
            raise ValueError("max_workers should not exceed 128")
        return v


class OnixConfig(BaseModel):
    """ONIX message header values"""

    sender_name: str = Field("Biblio Export", description="Sender company name")
    sender_email: str | None = Field(None, description="Sender contact email")


class CrossrefConfig(BaseModel):
    """Crossref deposit header values"""

    depositor_name: str = Field("Biblio Export", description="Depositor name")
    depositor_email: str = Field("deposits@example.org", description="Depositor email")
    registrant: str = Field("Biblio Export", description="Registrant organisation")


class LoggingConfig(BaseModel):
    """Logging configuration"""

    debug: bool = Field(False, description="Enable debug logging")
    log_file: str | None = Field(None, description="Log file path")


class ServerConfig(BaseModel):
    """HTTP server configuration"""

    host: str = Field("127.0.0.1", description="Bind address")
    port: int = Field(8000, ge=1, le=65535, description="Bind port")


class AppConfig(BaseModel):
    """Root application configuration model"""

    client: ClientConfig = Field(default_factory=ClientConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)
    onix: OnixConfig = Field(default_factory=OnixConfig)
    crossref: CrossrefConfig = Field(default_factory=CrossrefConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @classmethod
    def load(cls, config_path: Path | str | None = None) -> "AppConfig":
        """Load configuration from JSON file with defaults

        Args:
            config_path: Path to configuration JSON file

        Returns:
            Validated AppConfig instance
        """
        # Standard library imports
        import json

        if isinstance(config_path, str):
            config_path = Path(config_path)

        # If no path provided, try to find config.json in current directory
        if config_path is None:
            config_path = Path("config.json")
            if not config_path.exists():
                return cls()

        if config_path.exists():
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                return cls.model_validate(data)
            except (OSError, ValueError) as e:
                logger.warning(f"Failed to load config from {config_path}: {e}. Using defaults.")
                return cls()

        logger.warning(f"Config file {config_path} not found. Using defaults.")
        return cls()

    def to_dict(self) -> JSONDict:
        return self.model_dump()
