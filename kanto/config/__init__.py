"""Server profile loading and validation."""
from kanto.config.loader import ProfileLoader
from kanto.config.validator import ProfileValidator

__all__ = ['ProfileLoader', 'ProfileValidator']
