"""Core deployment workflow: configuration, errors, locking, pipeline."""
