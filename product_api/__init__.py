"""Product resource API: catalog schema, bus-driven CRUD handlers and HTTP routes."""

__version__ = "0.1.0"
