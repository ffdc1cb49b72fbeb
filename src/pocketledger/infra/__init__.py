"""Persistence infrastructure (SQLModel engine, sessions, repositories)."""
