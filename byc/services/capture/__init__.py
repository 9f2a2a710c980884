"""
Capture module - Camera / microphone device abstraction.

Factory function for creating a capture device based on provider
configuration.
"""

from .base import BaseCaptureDevice, MediaTrack, RecordedMedia

__all__ = [
    "BaseCaptureDevice",
    "MediaTrack",
    "RecordedMedia",
    "create_capture_device",
]


def create_capture_device(provider: str, **kwargs) -> BaseCaptureDevice:
    """Factory function to create a capture device instance.

    Args:
        provider: Capture provider name ("local", "synthetic")
        **kwargs: Provider-specific configuration

    Returns:
        BaseCaptureDevice implementation instance (not yet opened)

    Raises:
        ValueError: If provider is unknown
    """
    if provider == "local":
        from .local import LocalCaptureDevice

        return LocalCaptureDevice(**kwargs)
    elif provider == "synthetic":
        from .synthetic import SyntheticCaptureDevice

        return SyntheticCaptureDevice(**kwargs)
    else:
        raise ValueError(f"Unknown capture provider: {provider}")
