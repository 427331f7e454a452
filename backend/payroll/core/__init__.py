"""Core configuration, logging, auth, and error primitives."""
