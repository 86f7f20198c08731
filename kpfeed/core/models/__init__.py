"""Core domain models."""

from kpfeed.core.models.record import KpDataset, KpRecord, KpStatus

__all__ = ["KpDataset", "KpRecord", "KpStatus"]
