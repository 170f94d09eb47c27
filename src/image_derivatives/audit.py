"""Offline audit of aspect-group counts in a directory of photos."""

import glob
import os
from typing import Dict, List

from pydantic import BaseModel, Field

from .core.exceptions import ProbeError
from .core.protocols import LoggerProtocol
from .core.services import AspectClassifier, MetadataProber


class GroupAudit(BaseModel):
    """Divisibility of one aspect group's photo count by the batch size."""

    aspect_group: str
    count: int
    batch_size: int

    @property
    def remainder(self) -> int:
        return self.count % self.batch_size

    @property
    def evenly_divisible(self) -> bool:
        return self.remainder == 0

    @property
    def delete_to_fit(self) -> int:
        return self.remainder

    @property
    def add_to_fit(self) -> int:
        return -self.count % self.batch_size


class AuditReport(BaseModel):
    """Counts per aspect group plus the files that could not be grouped."""

    path: str
    batch_size: int
    total_files: int = 0
    counts: Dict[str, int] = Field(default_factory=dict)
    unclassified: List[str] = Field(default_factory=list)
    unreadable: List[str] = Field(default_factory=list)

    @property
    def groups(self) -> List[GroupAudit]:
        return [
            GroupAudit(aspect_group=group, count=count, batch_size=self.batch_size)
            for group, count in self.counts.items()
        ]

    def format_lines(self) -> List[str]:
        separator = "-" * 45
        lines = [
            f"Inspected {self.total_files} photos in {self.path}",
            separator,
        ]
        for name in self.unclassified:
            lines.append(f"Incorrect processed version '{name}', skipped")
        for name in self.unreadable:
            lines.append(f"Unreadable photo '{name}', skipped")
        for group in self.groups:
            if group.evenly_divisible:
                lines.append(
                    f"{group.aspect_group}: {group.count} photos, "
                    f"evenly divisible by {self.batch_size}"
                )
            else:
                lines.append(
                    f"{group.aspect_group}: {group.count} photos, not divisible by "
                    f"{self.batch_size}; delete {group.delete_to_fit} to have "
                    f"{group.count - group.delete_to_fit} photos, or add "
                    f"{group.add_to_fit} to have {group.count + group.add_to_fit}"
                )
        lines.append(separator)
        return lines


def audit_directory(
    path: str,
    prober: MetadataProber,
    classifier: AspectClassifier,
    logger: LoggerProtocol,
    batch_size: int = 3,
    pattern: str = "*.jpg",
) -> AuditReport:
    """
    Count photos per aspect group under ``path``.

    Every label in the classifier table is reported, even with a count of
    zero. Files that cannot be probed or classified are listed, not fatal.
    """
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    if not os.path.isdir(path):
        raise FileNotFoundError(f"Not a directory: {path}")

    photos = sorted(glob.glob(os.path.join(path, pattern)))
    logger.info(f"Loaded {len(photos)} photos from {path}")

    report = AuditReport(
        path=path,
        batch_size=batch_size,
        total_files=len(photos),
        counts={label: 0 for label in classifier.labels},
    )

    for photo_path in photos:
        filename = os.path.basename(photo_path)
        try:
            probe = prober.probe(photo_path)
        except ProbeError as e:
            logger.error(f"Could not probe '{filename}': {e}")
            report.unreadable.append(filename)
            continue

        label = classifier.classify(probe.width, probe.height)
        if label is None:
            logger.warning(f"Incorrect processed version '{filename}', skipping")
            report.unclassified.append(filename)
            continue
        report.counts[label] = report.counts.get(label, 0) + 1

    return report
