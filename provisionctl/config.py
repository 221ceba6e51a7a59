"""Configuration management for the provisionctl application."""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()

class Config:
    """Application configuration with sensible defaults."""

    # Root of the on-disk state (clusters/<name>/ lives below it)
    HOME: str = os.path.expanduser(
        os.getenv("PROVISIONCTL_HOME", os.path.join("~", ".provisionctl"))
    )

    # Driver plugins
    PLUGIN_PREFIX: str = "provisionctl-driver-"
    PLUGIN_DIR: str = os.path.expanduser(os.getenv("PROVISIONCTL_PLUGIN_DIR", ""))
    PLUGIN_HOST: str = os.getenv("PROVISIONCTL_PLUGIN_HOST", "127.0.0.1")

    # Timeouts (in seconds)
    PLUGIN_START_TIMEOUT: float = float(os.getenv("PLUGIN_START_TIMEOUT", "10"))
    PLUGIN_POLL_INTERVAL: float = float(os.getenv("PLUGIN_POLL_INTERVAL", "0.2"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT: str = os.getenv(
        "LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    @classmethod
    def clusters_dir(cls) -> Path:
        """Directory holding one sub-directory per persisted cluster."""
        return Path(cls.HOME) / "clusters"
