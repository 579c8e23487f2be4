"""SupportDesk - multi-tenant customer support backend."""

__version__ = "0.1.0"
