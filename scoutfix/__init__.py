"""scoutfix - installs the Docker Scout CLI plugin and registers it with Docker."""

__version__ = "0.1.0"
