"""Kanto - deployment automation for homelab servers."""

__version__ = "0.1.0"
