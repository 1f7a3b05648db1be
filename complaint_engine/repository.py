"""
Storage seam for complaints.

`ComplaintStore` only talks to a `ComplaintRepository`, so a database-backed
implementation can replace the in-memory one without touching call sites.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from .models import Complaint


class ComplaintRepository(ABC):

    @abstractmethod
    def add(self, complaint: Complaint) -> None:
        """Insert a new complaint ahead of all existing ones."""

    @abstractmethod
    def get(self, complaint_id: str) -> Optional[Complaint]:
        ...

    @abstractmethod
    def all(self) -> List[Complaint]:
        """Every complaint, newest first."""

    @abstractmethod
    def save(self, complaint: Complaint) -> None:
        ...

    @abstractmethod
    def __len__(self) -> int:
        ...


class InMemoryComplaintRepository(ComplaintRepository):

    def __init__(self):
        self._order: List[str] = []
        self._by_id: Dict[str, Complaint] = {}

    def add(self, complaint: Complaint) -> None:
        if complaint.id in self._by_id:
            raise ValueError(f"Duplicate complaint id {complaint.id}")
        self._by_id[complaint.id] = complaint
        self._order.insert(0, complaint.id)

    def get(self, complaint_id: str) -> Optional[Complaint]:
        return self._by_id.get(complaint_id)

    def all(self) -> List[Complaint]:
        return [self._by_id[cid] for cid in self._order]

    def save(self, complaint: Complaint) -> None:
        if complaint.id not in self._by_id:
            raise KeyError(complaint.id)
        self._by_id[complaint.id] = complaint

    def __len__(self) -> int:
        return len(self._order)


__all__ = ["ComplaintRepository", "InMemoryComplaintRepository"]
