"""provisionctl - multi-driver cluster provisioning CLI."""

__version__ = "0.1.0"
