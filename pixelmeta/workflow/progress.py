"""
Batch download results.

Plain counters and per-item outcomes; the front-end serializes them with
``to_dict``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pixelmeta.api.game_types import GameMetadata

# Per-item statuses
CREATED = 'created'
SKIPPED = 'skipped'
FAILED = 'failed'


@dataclass
class DownloadItem:
    """Outcome for a single ROM in a batch."""
    file_name: str
    status: str  # 'created', 'skipped', 'failed'
    metadata: Optional[GameMetadata] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'fileName': self.file_name, 'status': self.status}
        if self.metadata is not None:
            data['metadata'] = self.metadata.to_dict()
        return data


@dataclass
class SystemDownloadResult:
    """Result of a batch download for one system."""
    system_id: str
    processed: int = 0
    created: int = 0
    skipped: int = 0
    failed: int = 0
    items: List[DownloadItem] = field(default_factory=list)

    def add(self, file_name: str, status: str, metadata: Optional[GameMetadata] = None) -> None:
        """
        Record a per-file outcome and bump the matching counter.

        Raises:
            ValueError: If status is not created, skipped or failed
        """
        if status == CREATED:
            self.created += 1
        elif status == SKIPPED:
            self.skipped += 1
        elif status == FAILED:
            self.failed += 1
        else:
            raise ValueError(f"Unknown download status: {status}")
        self.items.append(DownloadItem(file_name=file_name, status=status, metadata=metadata))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'systemId': self.system_id,
            'processed': self.processed,
            'created': self.created,
            'skipped': self.skipped,
            'failed': self.failed,
            'items': [item.to_dict() for item in self.items],
        }


@dataclass
class AllDownloadResult:
    """Totals across every catalog system."""
    systems: List[SystemDownloadResult] = field(default_factory=list)
    processed: int = 0
    created: int = 0
    skipped: int = 0
    failed: int = 0

    def add(self, result: SystemDownloadResult) -> None:
        """Append a system result and fold its counters into the totals."""
        self.systems.append(result)
        self.processed += result.processed
        self.created += result.created
        self.skipped += result.skipped
        self.failed += result.failed

    def to_dict(self) -> Dict[str, Any]:
        return {
            'systems': [s.to_dict() for s in self.systems],
            'processed': self.processed,
            'created': self.created,
            'skipped': self.skipped,
            'failed': self.failed,
        }
