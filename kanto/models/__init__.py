"""Data models for Kanto."""
from kanto.models.environment import EnvSection, RenderedEnvironment
from kanto.models.profile import ServerIdentity, ServerProfile, VolumeLayout
from kanto.models.report import Severity, ValidationIssue, ValidationReport
from kanto.models.secrets import SecretRecord
from kanto.models.stack import Stack

__all__ = [
    'EnvSection',
    'RenderedEnvironment',
    'SecretRecord',
    'ServerIdentity',
    'ServerProfile',
    'Severity',
    'Stack',
    'ValidationIssue',
    'ValidationReport',
    'VolumeLayout',
]
