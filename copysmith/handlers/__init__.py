"""Entry point handlers."""
