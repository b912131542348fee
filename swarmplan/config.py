"""Configuration management for the swarmplan application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()

class Config:
    """Application configuration with sensible defaults."""

    # Execution target
    BASTION_IP: str = os.getenv("BASTION_IP", "")
    ENVIRONMENT: str = os.getenv("SWARM_ENVIRONMENT", "production")

    # SSH access used by rendered inventories and the reconciler
    SSH_USER: str = os.getenv("SSH_USER", "root")
    SSH_KEY: str = os.getenv("SSH_KEY", "~/.ssh/id_rsa")
    SSH_TIMEOUT: int = int(os.getenv("SSH_TIMEOUT", "10"))

    # Retry configuration
    MAX_RETRIES: int = int(os.getenv("MAX_RETRIES", "3"))
    RETRY_DELAY: float = float(os.getenv("RETRY_DELAY", "1.0"))

    # Paths
    STATE_DIR: str = os.getenv("STATE_DIR", "clusters/state")
    OUTPUT_DIR: str = os.getenv("OUTPUT_DIR", "build")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT: str = os.getenv(
        "LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # Security
    REDACT_KEYS: tuple = ("token", "password", "secret", "api_key")

    @classmethod
    def validate(cls) -> None:
        """Validate configuration required to execute against a cluster."""
        required = {
            "BASTION_IP": cls.BASTION_IP,
            "SSH_USER": cls.SSH_USER,
        }
        missing = [k for k, v in required.items() if not v]
        if missing:
            raise ValueError(f"Missing required configuration: {', '.join(missing)}")

# Don't validate on import, planning and rendering work without a bastion.
# Call Config.validate() before touching real hosts.
