"""
Configuration module for the Operator Broker.

Loads configuration from environment variables.
Covers the broker itself, the cluster connection and logging.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

SERVICE_ACCOUNT_DIR = "/var/run/secrets/kubernetes.io/serviceaccount"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclass
class BrokerConfig:
    """Broker identity and controller discovery configuration."""

    name: str = "operator"
    # Glob pattern resolved at startup (empty = no file discovery)
    controllers_pattern: str = ""
    entry_point_group: str = "operator_broker.controllers"
    load_entry_points: bool = True

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        return cls(
            name=os.getenv("BROKER_NAME", "operator"),
            controllers_pattern=os.getenv("BROKER_CONTROLLERS", ""),
            entry_point_group=os.getenv(
                "BROKER_ENTRY_POINT_GROUP", "operator_broker.controllers"
            ),
            load_entry_points=_env_bool("BROKER_LOAD_ENTRY_POINTS", "true"),
        )


def _default_api_url() -> str:
    host = os.getenv("KUBERNETES_SERVICE_HOST")
    if host:
        port = os.getenv("KUBERNETES_SERVICE_PORT", "443")
        return f"https://{host}:{port}"
    # kubectl proxy
    return "http://localhost:8001"


@dataclass
class ClusterConfig:
    """Kubernetes API server connection configuration."""

    api_url: str = "http://localhost:8001"
    token: str = field(default="", repr=False)  # Never log the token
    token_file: str = f"{SERVICE_ACCOUNT_DIR}/token"
    ca_file: Optional[str] = None
    verify_ssl: bool = True
    namespace: str = "default"
    request_timeout: float = 30.0  # seconds
    probe_on_connect: bool = True

    def __post_init__(self):
        if self.request_timeout <= 0:
            raise ValueError(
                f"request_timeout must be positive, got {self.request_timeout}"
            )

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        ca_file = os.getenv("KUBE_CA_FILE")
        if ca_file is None and os.path.exists(f"{SERVICE_ACCOUNT_DIR}/ca.crt"):
            ca_file = f"{SERVICE_ACCOUNT_DIR}/ca.crt"

        return cls(
            api_url=os.getenv("KUBE_API_URL") or _default_api_url(),
            token=os.getenv("KUBE_TOKEN", ""),
            token_file=os.getenv("KUBE_TOKEN_FILE", f"{SERVICE_ACCOUNT_DIR}/token"),
            ca_file=ca_file,
            verify_ssl=_env_bool("KUBE_VERIFY_SSL", "true"),
            namespace=os.getenv("KUBE_NAMESPACE", "default"),
            request_timeout=float(os.getenv("KUBE_REQUEST_TIMEOUT", "30")),
            probe_on_connect=_env_bool("KUBE_PROBE_ON_CONNECT", "true"),
        )

    def resolve_token(self) -> str:
        """Return the explicit token, falling back to the token file."""
        if self.token:
            return self.token
        if self.token_file and os.path.isfile(self.token_file):
            with open(self.token_file, "r") as f:
                return f.read().strip()
        return ""


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = DEFAULT_LOG_FORMAT

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        return cls(
            level=os.getenv("LOG_LEVEL", "INFO").upper(),
            format=os.getenv("LOG_FORMAT", DEFAULT_LOG_FORMAT),
        )


@dataclass
class Config:
    """Main configuration object."""

    broker: BrokerConfig
    cluster: ClusterConfig
    logging: LoggingConfig

    @classmethod
    def from_env(cls):
        """Load all configuration from environment variables."""
        return cls(
            broker=BrokerConfig.from_env(),
            cluster=ClusterConfig.from_env(),
            logging=LoggingConfig.from_env(),
        )

    @classmethod
    def default(cls):
        """Return default configuration."""
        return cls(
            broker=BrokerConfig(),
            cluster=ClusterConfig(),
            logging=LoggingConfig(),
        )


# Global config instance
config: Optional[Config] = None


def load_config() -> Config:
    """Load configuration (singleton pattern)."""
    global config
    if config is None:
        config = Config.from_env()
    return config


def get_config() -> Config:
    """Get the current configuration."""
    if config is None:
        return load_config()
    return config


def reset_config() -> None:
    """Reset configuration (mainly for testing)."""
    global config
    config = None
