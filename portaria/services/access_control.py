"""
Access Control Service - High-level API for the visit lifecycle

Owns the visitor directory, the visit ledger and the local store they are
persisted to:
- Registering entries (validate, check conflicts, upsert visitor, open visit)
- Registering exits
- Searching visitors, active visits and history
- Building period reports

Every mutating call rewrites the whole store before returning. A failed
write leaves the in-memory state as it was before the call.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import date, datetime
from typing import Callable, Iterator, List, Optional

from pydantic import ValidationError as PydanticValidationError

from portaria.exceptions import ConflictError, NotFoundError, ValidationError
from portaria.models.visit import Visit, VisitReport
from portaria.models.visitor import EntryRequest, Visitor, REQUIRED_FIELDS_MESSAGE
from portaria.workers.store_worker.local_store import LocalStore
from portaria.utils.field_formatter import FieldFormatter
from portaria.workers.store_worker.visit_repo import ACTIVE_VISIT_MESSAGE, VisitRepository
from portaria.workers.store_worker.visitor_repo import VisitorRepository

logger = logging.getLogger(__name__)

VISITOR_SEARCH_MESSAGE = "Digite um CPF ou nome para buscar"
EXIT_SEARCH_MESSAGE = "Digite um nome ou placa para buscar"
VISITOR_NOT_FOUND_MESSAGE = "Visitante não encontrado"


def _first_error_message(exc: PydanticValidationError) -> str:
    for error in exc.errors():
        ctx_error = (error.get("ctx") or {}).get("error")
        if ctx_error:
            return str(ctx_error)
    return REQUIRED_FIELDS_MESSAGE


def _require_term(term: Optional[str], message: str) -> str:
    term = (term or "").strip()
    if not term:
        raise ValidationError(message)
    return term


class AccessControlService:
    """
    Application context for visitor access control

    Examples:
        service = AccessControlService(LocalStore("data/portaria.json"))

        visit = service.register_entry(
            full_name="Ana Silva",
            national_id="123.456.789-00",
            destination="Sala 3",
        )
        service.register_exit(visit.id)

        report = service.report(date_from=date(2024, 1, 1))
    """

    def __init__(
        self,
        store: Optional[LocalStore] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize service and load both collections from the store

        Args:
            store: Local store (in-memory store when omitted)
            clock: Returns the current time (injectable for tests)
        """
        self.store = store if store is not None else LocalStore()
        self.clock = clock
        self.visitors = VisitorRepository.load(self.store, clock=clock)
        self.visits = VisitRepository.load(self.store, clock=clock)
        self._lock = threading.Lock()

    def save_data(self) -> None:
        """Persist both collections in a single store write"""
        self.store.set_items({
            VisitorRepository.STORE_KEY: self.visitors.dump(),
            VisitRepository.STORE_KEY: self.visits.dump(),
        })

    @contextmanager
    def _rollback_on_failure(self) -> Iterator[None]:
        """Restore both repositories if the wrapped mutation or its save fails"""
        visitors = self.visitors.snapshot()
        visits = self.visits.snapshot()
        try:
            yield
        except Exception as e:
            self.visitors.restore(visitors)
            self.visits.restore(visits)
            logger.error(f"Store update failed, in-memory state restored: {e}")
            raise

    # Entry / exit

    def register_entry(
        self,
        full_name: Optional[str],
        national_id: Optional[str],
        destination: Optional[str],
        company: Optional[str] = None,
        plate: Optional[str] = None,
    ) -> Visit:
        """
        Register a visitor's entry

        Raw form values are normalized first (CPF digits, upper-case plate).
        An active visit for the same CPF is rejected before the visitor
        record is touched.

        Args:
            full_name: Visitor full name (required)
            national_id: CPF, masked or not (required)
            destination: Destination (required)
            company: Company (optional)
            plate: Vehicle plate (optional)

        Returns:
            The new active visit

        Raises:
            ValidationError: If a required field is missing or the CPF is invalid
            ConflictError: If the CPF already has an active visit
            OSError: If the store cannot be written (nothing is registered)
        """
        try:
            request = EntryRequest(
                full_name=full_name,
                company=company,
                national_id=national_id,
                plate=plate,
                destination=destination,
            )
        except PydanticValidationError as e:
            message = _first_error_message(e)
            logger.warning(f"Rejected entry form: {message}")
            raise ValidationError(message) from e

        with self._lock:
            if self.visits.has_active_visit(request.national_id):
                logger.warning("Rejected entry: CPF already has an active visit")
                raise ConflictError(ACTIVE_VISIT_MESSAGE)

            with self._rollback_on_failure():
                visitor = self.visitors.upsert(
                    full_name=request.full_name,
                    company=request.company,
                    national_id=request.national_id,
                    plate=request.plate,
                )
                visit = self.visits.register_entry(visitor, request.destination)
                self.save_data()

        return visit

    def register_exit(self, visit_id: str) -> Visit:
        """
        Register a visitor's exit

        An already completed visit is returned unchanged and the store is
        not rewritten.

        Args:
            visit_id: Visit id

        Returns:
            The completed visit

        Raises:
            NotFoundError: If the visit does not exist
            OSError: If the store cannot be written (the visit stays active)
        """
        with self._lock:
            existing = self.visits.find_by_id(visit_id)
            if existing is not None and not existing.is_active:
                return self.visits.register_exit(visit_id)

            with self._rollback_on_failure():
                visit = self.visits.register_exit(visit_id)
                self.save_data()
        return visit

    # Queries

    def get_visitor(self, visitor_id: str) -> Visitor:
        """
        Get a visitor to pre-fill the entry form

        Raises:
            NotFoundError: If the visitor does not exist
        """
        visitor = self.visitors.find_by_id(visitor_id)
        if visitor is None:
            raise NotFoundError(VISITOR_NOT_FOUND_MESSAGE)
        return visitor

    def search_visitors(self, term: Optional[str]) -> List[Visitor]:
        """
        Search the directory by name or CPF

        Raises:
            ValidationError: If the term is blank
        """
        return self.visitors.find_by_name_or_id(_require_term(term, VISITOR_SEARCH_MESSAGE))

    def active_visits(self, term: Optional[str] = None) -> List[Visit]:
        """
        Active visits, optionally filtered by name or plate

        Args:
            term: Filter (None lists every active visit)

        Raises:
            ValidationError: If a term is given but blank
        """
        if term is None:
            return self.visits.list_active()
        return self.visits.search_active(_require_term(term, EXIT_SEARCH_MESSAGE))

    def search_history(self, term: Optional[str]) -> List[Visit]:
        """
        Search every visit by name or CPF, most recent first

        Raises:
            ValidationError: If the term is blank
        """
        return self.visits.search_history(_require_term(term, VISITOR_SEARCH_MESSAGE))

    def report(
        self, date_from: Optional[date] = None, date_to: Optional[date] = None
    ) -> VisitReport:
        """Visits entered between two calendar days (inclusive)"""
        return self.visits.report_between(date_from, date_to)

    def duration(self, visit: Visit) -> str:
        """Formatted time spent inside (up to now for active visits)"""
        return FieldFormatter.format_duration(self.visits.duration(visit))
