"""
Configuration module for the buildpack shim service.

Loads all configuration from environment variables with sensible defaults.
"""

import os


class Config:
    """
    Shim service configuration from environment variables.

    Loads all configuration values from environment variables with sensible defaults.
    All settings can be overridden by setting the corresponding environment variable.
    """

    def __init__(self):
        """
        Initialize configuration from environment variables.

        Environment Variables:
            LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR). Default: INFO
            FLASK_HOST: Server bind address. Default: 0.0.0.0
            FLASK_PORT: Server bind port. Default: 3000
            REGISTRY_URL: Base URL of the v2 buildpack registry.
                Default: https://buildpack-registry.s3.amazonaws.com/buildpacks
            BUILDPACK_DIR: Directory containing bin/{detect,build,release,exports}.
                Default: current working directory
            SHIM_TMPDIR: Parent directory for per-request workspaces. Default: system temp dir
            MAX_IDENTIFIER_LENGTH: Maximum buildpack or stack id length. Default: 255
        """
        # Logging
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

        # Server
        self.FLASK_HOST = os.getenv("FLASK_HOST", "0.0.0.0")
        self.FLASK_PORT = int(os.getenv("FLASK_PORT", "3000"))

        # Shim
        self.REGISTRY_URL = os.getenv(
            "REGISTRY_URL", "https://buildpack-registry.s3.amazonaws.com/buildpacks"
        ).rstrip("/")
        self.BUILDPACK_DIR = os.getenv("BUILDPACK_DIR") or None
        self.SHIM_TMPDIR = os.getenv("SHIM_TMPDIR") or None

        # Validation limits
        self.MAX_IDENTIFIER_LENGTH = int(os.getenv("MAX_IDENTIFIER_LENGTH", "255"))

    def __repr__(self):
        """String representation for logging."""
        return (
            f"Config(LOG_LEVEL={self.LOG_LEVEL}, "
            f"FLASK_HOST={self.FLASK_HOST}, "
            f"FLASK_PORT={self.FLASK_PORT}, "
            f"REGISTRY_URL={self.REGISTRY_URL}, "
            f"BUILDPACK_DIR={self.BUILDPACK_DIR})"
        )


# Global config instance
config = Config()
