"""Database engine, sessions, and query helpers."""
