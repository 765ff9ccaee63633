"""
Visit Repository - Visit ledger operations

Append-only log of visits. A visit starts active, moves to completed once
through register_exit, and is never deleted or re-opened.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Callable, Dict, Any, List, Optional, Tuple

from portaria.exceptions import ConflictError, NotFoundError
from portaria.models.visit import Visit, VisitReport
from portaria.models.visitor import Visitor
from portaria.workers.store_worker.local_store import LocalStore

logger = logging.getLogger(__name__)

ACTIVE_VISIT_MESSAGE = "Este visitante já possui uma entrada ativa. Registre a saída primeiro."
VISIT_NOT_FOUND_MESSAGE = "Visita não encontrada"


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max)


class VisitRepository:
    """Repository for the visit ledger"""

    STORE_KEY = "visits"

    def __init__(
        self,
        visits: Optional[List[Visit]] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize visit repository

        Args:
            visits: Initial records, in insertion order
            clock: Returns the current time (injectable for tests)
        """
        self._visits: List[Visit] = list(visits or [])
        self.clock = clock

    @classmethod
    def load(
        cls, store: LocalStore, clock: Callable[[], datetime] = datetime.now
    ) -> "VisitRepository":
        """
        Build the repository from the records under STORE_KEY

        Args:
            store: Local store to read
            clock: Returns the current time

        Returns:
            Populated repository
        """
        visits = [Visit.model_validate(doc) for doc in store.get_item(cls.STORE_KEY)]
        logger.info(f"Loaded {len(visits)} visit(s)")
        return cls(visits, clock=clock)

    def dump(self) -> List[Dict[str, Any]]:
        """Serialize every record with its persisted keys"""
        return [visit.model_dump(by_alias=True, mode="json") for visit in self._visits]

    def snapshot(self) -> List[Tuple[Visit, Visit]]:
        """Current records paired with copies of their field values"""
        return [(visit, visit.model_copy()) for visit in self._visits]

    def restore(self, snapshot: List[Tuple[Visit, Visit]]) -> None:
        """Undo every change made since snapshot() (same record objects)"""
        for visit, saved in snapshot:
            for field in Visit.model_fields:
                setattr(visit, field, getattr(saved, field))
        self._visits = [visit for visit, _ in snapshot]

    def all(self) -> List[Visit]:
        return list(self._visits)

    def __len__(self) -> int:
        return len(self._visits)

    def find_by_id(self, visit_id: str) -> Optional[Visit]:
        for visit in self._visits:
            if visit.id == visit_id:
                return visit
        return None

    def has_active_visit(self, national_id: str) -> bool:
        """Check whether the CPF has a visit without exit time"""
        return any(
            visit.national_id == national_id and visit.is_active
            for visit in self._visits
        )

    def register_entry(self, visitor: Visitor, destination: str) -> Visit:
        """
        Open a visit for a visitor

        Args:
            visitor: Visitor entering (its current fields are copied)
            destination: Where the visitor is going

        Returns:
            The new active visit

        Raises:
            ConflictError: If the visitor already has an active visit
        """
        if self.has_active_visit(visitor.national_id):
            logger.warning(f"Rejected entry for visitor {visitor.id}: visit already active")
            raise ConflictError(ACTIVE_VISIT_MESSAGE)

        visit = Visit(
            visitor_id=visitor.id,
            full_name=visitor.full_name,
            company=visitor.company,
            national_id=visitor.national_id,
            plate=visitor.plate,
            destination=destination,
            entry_time=self.clock(),
            exit_time=None,
        )
        self._visits.append(visit)

        logger.info(f"Entry registered: visit {visit.id} (visitor {visitor.id})")
        return visit

    def register_exit(self, visit_id: str) -> Visit:
        """
        Close an active visit

        Closing an already completed visit returns it unchanged.

        Args:
            visit_id: Visit id

        Returns:
            The completed visit

        Raises:
            NotFoundError: If no visit has that id
        """
        visit = self.find_by_id(visit_id)
        if visit is None:
            logger.warning(f"Rejected exit for unknown visit {visit_id}")
            raise NotFoundError(VISIT_NOT_FOUND_MESSAGE)

        if not visit.is_active:
            logger.info(f"Visit {visit_id} already completed at {visit.exit_time.isoformat()}")
            return visit

        visit.exit_time = self.clock()
        logger.info(f"Exit registered: visit {visit.id}")
        return visit

    def list_active(self) -> List[Visit]:
        """Active visits in insertion order"""
        return [visit for visit in self._visits if visit.is_active]

    def search_active(self, term: str) -> List[Visit]:
        """
        Search active visits by name or plate

        Args:
            term: Name or plate fragment (case-insensitive)

        Returns:
            Matching active visits in insertion order
        """
        results = [
            visit
            for visit in self.list_active()
            if visit.matches_name(term) or visit.matches_plate(term)
        ]
        logger.debug(f"Active search '{term}' matched {len(results)} visit(s)")
        return results

    def search_history(self, term: str) -> List[Visit]:
        """
        Search every visit by name or CPF

        Args:
            term: Name fragment (case-insensitive) or CPF digits

        Returns:
            Matching visits, most recent entry first
        """
        results = [
            visit
            for visit in self._visits
            if visit.matches_name(term) or visit.matches_cpf(term)
        ]
        logger.debug(f"History search '{term}' matched {len(results)} visit(s)")
        return sorted(results, key=lambda visit: visit.entry_time, reverse=True)

    def report_between(
        self, date_from: Optional[date] = None, date_to: Optional[date] = None
    ) -> VisitReport:
        """
        Visits entered within a period

        Both bounds are inclusive calendar days: date_from from 00:00 and
        date_to through 23:59:59.999999. A missing bound is open.

        Args:
            date_from: First day (optional)
            date_to: Last day (optional)

        Returns:
            Report with the visits (most recent first) and summary counts
        """
        visits = self._visits

        if date_from is not None:
            lower = start_of_day(date_from)
            visits = [visit for visit in visits if visit.entry_time >= lower]

        if date_to is not None:
            upper = end_of_day(date_to)
            visits = [visit for visit in visits if visit.entry_time <= upper]

        visits = sorted(visits, key=lambda visit: visit.entry_time, reverse=True)
        logger.debug(f"Report {date_from} - {date_to}: {len(visits)} visit(s)")

        return VisitReport(date_from=date_from, date_to=date_to, visits=visits)

    def duration(self, visit: Visit) -> timedelta:
        """Elapsed time of a visit, using the repository clock for active ones"""
        return visit.duration(now=self.clock())
