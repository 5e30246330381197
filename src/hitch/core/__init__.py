"""Core primitives: errors, logging, settings and gateway configuration."""
