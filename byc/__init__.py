"""BYC career assessment: video interview recording service."""

__version__ = "0.1.0"
