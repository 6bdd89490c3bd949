"""Adapters binding the domain ports to SQLAlchemy and Discord."""
