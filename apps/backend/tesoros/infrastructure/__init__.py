"""Infrastructure layer: repositories and resilience helpers."""
