"""
Visitor Repository - Visitor directory operations

Deduplicated set of visitors keyed by CPF. Records are created or updated
only through upsert and are never deleted.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, Any, List, Optional, Tuple

from portaria.models.visitor import Visitor
from portaria.utils.field_formatter import FieldFormatter
from portaria.workers.store_worker.local_store import LocalStore

logger = logging.getLogger(__name__)


class VisitorRepository:
    """Repository for the visitor directory"""

    STORE_KEY = "visitors"

    def __init__(
        self,
        visitors: Optional[List[Visitor]] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize visitor repository

        Args:
            visitors: Initial records, in insertion order
            clock: Returns the current time (injectable for tests)
        """
        self._visitors: List[Visitor] = list(visitors or [])
        self.clock = clock

    @classmethod
    def load(
        cls, store: LocalStore, clock: Callable[[], datetime] = datetime.now
    ) -> "VisitorRepository":
        """
        Build the repository from the records under STORE_KEY

        Args:
            store: Local store to read
            clock: Returns the current time

        Returns:
            Populated repository
        """
        visitors = [Visitor.model_validate(doc) for doc in store.get_item(cls.STORE_KEY)]
        logger.info(f"Loaded {len(visitors)} visitor(s)")
        return cls(visitors, clock=clock)

    def dump(self) -> List[Dict[str, Any]]:
        """Serialize every record with its persisted keys"""
        return [visitor.model_dump(by_alias=True, mode="json") for visitor in self._visitors]

    def snapshot(self) -> List[Tuple[Visitor, Visitor]]:
        """Current records paired with copies of their field values"""
        return [(visitor, visitor.model_copy()) for visitor in self._visitors]

    def restore(self, snapshot: List[Tuple[Visitor, Visitor]]) -> None:
        """Undo every change made since snapshot() (same record objects)"""
        for visitor, saved in snapshot:
            for field in Visitor.model_fields:
                setattr(visitor, field, getattr(saved, field))
        self._visitors = [visitor for visitor, _ in snapshot]

    def all(self) -> List[Visitor]:
        return list(self._visitors)

    def __len__(self) -> int:
        return len(self._visitors)

    def find_by_id(self, visitor_id: str) -> Optional[Visitor]:
        """
        Find visitor by id

        Args:
            visitor_id: Visitor id

        Returns:
            Visitor if found, None otherwise
        """
        for visitor in self._visitors:
            if visitor.id == visitor_id:
                return visitor
        return None

    def find_by_national_id(self, national_id: str) -> Optional[Visitor]:
        """
        Find visitor by normalized CPF

        Args:
            national_id: 11-digit CPF

        Returns:
            Visitor if found, None otherwise
        """
        for visitor in self._visitors:
            if visitor.national_id == national_id:
                return visitor
        return None

    def find_by_name_or_id(self, term: str) -> List[Visitor]:
        """
        Search visitors by name or CPF

        Name matching is a case-insensitive substring match. CPF matching
        compares the digits of the term against the stored CPF and only
        applies when the term contains digits.

        Args:
            term: Name fragment or (masked) CPF fragment

        Returns:
            Matching visitors in insertion order (empty list when none)
        """
        lowered = term.lower()
        digits = FieldFormatter.digits_only(term)

        results = [
            visitor
            for visitor in self._visitors
            if lowered in visitor.full_name.lower()
            or (digits and digits in visitor.national_id)
        ]
        logger.debug(f"Visitor search '{term}' matched {len(results)} record(s)")
        return results

    def upsert(
        self,
        full_name: str,
        company: Optional[str],
        national_id: str,
        plate: Optional[str],
    ) -> Visitor:
        """
        Create a visitor or refresh an existing one

        The CPF must already be normalized and validated by the caller.

        Args:
            full_name: Visitor full name
            company: Company (optional)
            national_id: 11-digit CPF
            plate: Normalized plate (optional)

        Returns:
            The created or updated visitor
        """
        visitor = self.find_by_national_id(national_id)

        if visitor is not None:
            visitor.full_name = full_name
            visitor.company = company
            visitor.plate = plate
            logger.info(f"Updated visitor {visitor.id}")
            return visitor

        visitor = Visitor(
            full_name=full_name,
            company=company,
            national_id=national_id,
            plate=plate,
            created_at=self.clock(),
        )
        self._visitors.append(visitor)
        logger.info(f"Created visitor {visitor.id}")
        return visitor
