"""User-facing entry points: the command line and the HTTP API."""
