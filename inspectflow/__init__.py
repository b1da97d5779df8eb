"""InspectFlow - multi-tenant site inspection approval service."""

__version__ = "0.3.0"
