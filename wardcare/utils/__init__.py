"""Shared utilities: logging setup and the audit trail."""
