"""
Visitor data model

Represents a person registered at the gatehouse, keyed by CPF. Field
aliases match the keys persisted under the "visitors" store key.
"""

from datetime import datetime as dt
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator

from portaria.utils.field_formatter import FieldFormatter

REQUIRED_FIELDS_MESSAGE = "Preencha todos os campos obrigatórios"
INVALID_CPF_MESSAGE = "CPF deve ter 11 dígitos"


def new_record_id() -> str:
    """Opaque unique id for visitors and visits"""
    return uuid4().hex


def to_local_time(value: dt) -> dt:
    """Convert an aware timestamp (e.g. ISO with Z) to naive local time"""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def blank_to_none(value: Optional[str]) -> Optional[str]:
    """Stored optional fields use None, never an empty string"""
    if value is None:
        return None
    value = value.strip()
    return value or None


class Visitor(BaseModel):
    """Visitor directory record"""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_record_id, description="Opaque visitor id")

    full_name: str = Field(..., alias="nome", description="Visitor full name")
    company: Optional[str] = Field(None, alias="empresa", description="Company")
    national_id: str = Field(..., alias="cpf", description="CPF, 11 digits")
    plate: Optional[str] = Field(None, alias="placa", description="Vehicle plate")

    created_at: dt = Field(
        default_factory=dt.now, alias="createdAt", description="Record creation timestamp"
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

    @field_validator("created_at")
    @classmethod
    def _local_time(cls, value: dt) -> dt:
        return to_local_time(value)


class EntryRequest(BaseModel):
    """
    Raw entry form submission

    Normalizes the typed values (trimmed text, digit-only CPF, upper-case
    alphanumeric plate) and rejects the submission when a required field is
    missing or the CPF does not have 11 digits.
    """

    model_config = ConfigDict(populate_by_name=True)

    full_name: str = Field(default="", alias="nome")
    company: Optional[str] = Field(None, alias="empresa")
    national_id: str = Field(default="", alias="cpf")
    plate: Optional[str] = Field(None, alias="placa")
    destination: str = Field(default="", alias="destino")

    @field_validator("full_name", "destination", mode="before")
    @classmethod
    def _strip(cls, value):
        if value is None:
            return ""
        return value.strip() if isinstance(value, str) else value

    @field_validator("company", mode="before")
    @classmethod
    def _blank_company(cls, value):
        return blank_to_none(value) if isinstance(value, str) else value

    @field_validator("national_id", mode="before")
    @classmethod
    def _normalize_cpf(cls, value):
        if value is None:
            return ""
        return FieldFormatter.normalize_cpf(value) if isinstance(value, str) else value

    @field_validator("plate", mode="before")
    @classmethod
    def _normalize_plate(cls, value):
        if value is None or isinstance(value, str):
            return FieldFormatter.normalize_plate(value)
        return value

    @model_validator(mode="after")
    def _check_required(self) -> "EntryRequest":
        if not self.full_name or not self.national_id or not self.destination:
            raise ValueError(REQUIRED_FIELDS_MESSAGE)
        if not FieldFormatter.is_valid_cpf(self.national_id):
            raise ValueError(INVALID_CPF_MESSAGE)
        return self
