"""Configuration, exceptions and shared models."""
