"""Provider configuration."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Provider settings loaded from environment variables."""

    # HTTP surface for the orchestrator
    host: str = "127.0.0.1"
    port: int = 8011

    # Privilege escalation for switch and tap commands
    use_sudo: bool = True

    # Command locations
    ovs_vsctl_path: str = "ovs-vsctl"
    ovs_ofctl_path: str = "ovs-ofctl"
    ip_path: str = "/sbin/ip"

    # OpenFlow protocols passed to ovs-ofctl (-O). Fixed for the process lifetime.
    openflow_protocols: list[str] = [
        "OpenFlow10",
        "OpenFlow11",
        "OpenFlow12",
        "OpenFlow13",
        "OpenFlow14",
        "OpenFlow15",
    ]

    # Owner of created tap devices (current user if empty)
    tap_owner: str = ""

    # Time limit the HTTP surface applies to each reconciler call (seconds)
    command_timeout: float = 30.0

    # Logging configuration
    log_format: str = "json"  # "json" or "text"
    log_level: str = "INFO"

    class Config:
        env_prefix = "OVS_PROVIDER_"


settings = Settings()
