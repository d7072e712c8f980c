"""Workflow coordination package."""

from .metadata_service import MetadataService
from .orchestrator import BatchOrchestrator
from .progress import AllDownloadResult, DownloadItem, SystemDownloadResult

__all__ = [
    "MetadataService",
    "BatchOrchestrator",
    "AllDownloadResult",
    "DownloadItem",
    "SystemDownloadResult",
]
