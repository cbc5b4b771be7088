"""SolarDesk backend: tenant-scoped resources with an audit trail."""

__version__ = "0.1.0"
