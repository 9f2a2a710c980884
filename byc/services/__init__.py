"""Service layer: capture devices, interview sessions, progress and storage."""
