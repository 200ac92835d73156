"""Core domain types, configuration and money helpers."""
