"""Encrypted per-server secret records."""
from kanto.services.secrets.age import AgeCipher
from kanto.services.secrets.store import SecretStore

__all__ = ['AgeCipher', 'SecretStore']
