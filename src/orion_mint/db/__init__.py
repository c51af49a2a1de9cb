"""Database configuration and utilities."""

from .session import SessionLocal, get_session_factory

__all__ = ["get_session_factory", "SessionLocal"]
