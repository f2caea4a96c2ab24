"""Credential and session core: registration, login, session tokens and password reset."""

__version__ = "0.1.0"
