"""Repositories for the metadata store."""

from .base import BaseRepository
from .containers import ContainerRecordRepository

__all__ = ["BaseRepository", "ContainerRecordRepository"]
