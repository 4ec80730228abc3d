"""Locations (local filesystem, remote host) and remote hash commands"""
from .hash_command import FileHash, HashCommand, SHA256SUM, SHA256, get_hash_command
from .local import LocalLocation
from .remote import RemoteLocation

__all__ = [
    "FileHash", "HashCommand", "SHA256SUM", "SHA256", "get_hash_command",
    "LocalLocation",
    "RemoteLocation",
]
