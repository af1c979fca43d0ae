"""Ambient infrastructure: errors, logging and configuration."""
