"""
Visit data model

Represents one entry/exit event. Visitor fields are copied at entry time,
not re-joined on read. Field aliases match the keys persisted under the
"visits" store key; "saida" is null while the visit is active.
"""

from datetime import date, datetime as dt, timedelta
from typing import List, Optional

from pydantic import BaseModel, Field, ConfigDict, field_validator

from portaria.models.visitor import blank_to_none, new_record_id, to_local_time
from portaria.utils.field_formatter import FieldFormatter

STATUS_ACTIVE = "Ativa"
STATUS_COMPLETED = "Finalizada"


class Visit(BaseModel):
    """Visit ledger record"""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_record_id, description="Opaque visit id")
    visitor_id: str = Field(..., alias="visitorId", description="Owning visitor id")

    # Snapshot of the visitor at entry time
    full_name: str = Field(..., alias="nome")
    company: Optional[str] = Field(None, alias="empresa")
    national_id: str = Field(..., alias="cpf")
    plate: Optional[str] = Field(None, alias="placa")
    destination: str = Field(..., alias="destino")

    entry_time: dt = Field(..., alias="entrada", description="Entry timestamp")
    exit_time: Optional[dt] = Field(
        None, alias="saida", description="Exit timestamp (None while active)"
    )

    @field_validator("company", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        return blank_to_none(value) if isinstance(value, str) else value

    @field_validator("plate", mode="before")
    @classmethod
    def _normalize_plate(cls, value):
        # Older records kept the typed mask (ABC-1234)
        if value is None or isinstance(value, str):
            return FieldFormatter.normalize_plate(value)
        return value

    @field_validator("entry_time", "exit_time")
    @classmethod
    def _local_time(cls, value: Optional[dt]) -> Optional[dt]:
        if value is None:
            return None
        return to_local_time(value)

    @property
    def is_active(self) -> bool:
        return self.exit_time is None

    @property
    def status(self) -> str:
        return STATUS_ACTIVE if self.is_active else STATUS_COMPLETED

    def duration(self, now: Optional[dt] = None) -> timedelta:
        """
        Time spent inside

        Args:
            now: Reference time for active visits (defaults to dt.now())

        Returns:
            (exit_time or now) - entry_time
        """
        end = self.exit_time or now or dt.now()
        return end - self.entry_time

    def matches_name(self, term: str) -> bool:
        return term.lower() in self.full_name.lower()

    def matches_plate(self, term: str) -> bool:
        plate = FieldFormatter.normalize_plate(term)
        return bool(self.plate and plate) and plate in self.plate

    def matches_cpf(self, term: str) -> bool:
        digits = FieldFormatter.digits_only(term)
        return bool(digits) and digits in self.national_id


class VisitReport(BaseModel):
    """Visits entered within a period, most recent first, with summary counts"""

    date_from: Optional[date] = None
    date_to: Optional[date] = None
    visits: List[Visit] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.visits)

    @property
    def active(self) -> int:
        return sum(1 for visit in self.visits if visit.is_active)

    @property
    def completed(self) -> int:
        return sum(1 for visit in self.visits if not visit.is_active)

    @property
    def period_label(self) -> str:
        if self.date_from and self.date_to:
            return (
                f"Período: {FieldFormatter.format_date(self.date_from)} "
                f"a {FieldFormatter.format_date(self.date_to)}"
            )
        if self.date_from:
            return f"A partir de: {FieldFormatter.format_date(self.date_from)}"
        if self.date_to:
            return f"Até: {FieldFormatter.format_date(self.date_to)}"
        return "Todas as visitas"
