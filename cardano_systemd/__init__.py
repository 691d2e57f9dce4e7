"""cardano-systemd - Manage the systemd services of a Cardano node deployment."""

__version__ = "1.0.0"
