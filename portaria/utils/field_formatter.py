"""
Field Formatter - Normalize and render visitor form fields

Provides regex-based normalization of raw form input (CPF, plate) and the
fixed pt-BR rendering used by search results, reports and the CSV export
"""

import re
import logging
from datetime import date, datetime, timedelta
from typing import Optional

logger = logging.getLogger(__name__)


class FieldFormatter:
    """
    Tool to normalize and format visitor fields

    Normalization runs once at the input boundary; formatting runs only
    when a record is rendered. Stored values are always normalized.
    """

    CPF_LENGTH = 11

    # Anything that is not a digit
    NON_DIGIT_PATTERN = re.compile(r'\D')

    # 12345678900 -> 123.456.789-00
    CPF_PATTERN = re.compile(r'^(\d{3})(\d{3})(\d{3})(\d{2})$')

    # Anything outside the plate alphabet (after upper-casing)
    NON_PLATE_PATTERN = re.compile(r'[^A-Z0-9]')

    # ABC1234 -> ABC-1234, ABC1D23 -> ABC-1D23
    PLATE_PATTERN = re.compile(r'^([A-Z]{3})(\d)')

    DATETIME_FORMAT = "%d/%m/%Y, %H:%M:%S"
    DATE_FORMAT = "%d/%m/%Y"

    @classmethod
    def digits_only(cls, value: Optional[str]) -> str:
        """
        Strip every non-digit character

        Args:
            value: Raw text (may be None)

        Returns:
            Digit-only string (empty when value has no digits)
        """
        if not value:
            return ""
        return cls.NON_DIGIT_PATTERN.sub("", value)

    @classmethod
    def normalize_cpf(cls, value: Optional[str]) -> str:
        """Normalize a typed CPF (with or without mask) to its digits"""
        return cls.digits_only(value)

    @classmethod
    def is_valid_cpf(cls, cpf: str) -> bool:
        """Check that a normalized CPF has exactly 11 digits"""
        return len(cpf) == cls.CPF_LENGTH and cpf.isdigit()

    @classmethod
    def format_cpf(cls, cpf: str) -> str:
        """
        Render a normalized CPF as ###.###.###-##

        Args:
            cpf: 11-digit CPF

        Returns:
            Masked CPF, or the input unchanged when it is not 11 digits
        """
        return cls.CPF_PATTERN.sub(r'\1.\2.\3-\4', cpf or "")

    @classmethod
    def normalize_plate(cls, value: Optional[str]) -> Optional[str]:
        """
        Normalize a typed plate to upper-case alphanumerics

        Args:
            value: Raw plate (may be None, blank or masked)

        Returns:
            Normalized plate, or None when nothing is left
        """
        if not value:
            return None
        plate = cls.NON_PLATE_PATTERN.sub("", value.upper())
        return plate or None

    @classmethod
    def format_plate(cls, plate: Optional[str]) -> str:
        """Render a normalized plate with the hyphen after its letters"""
        if not plate:
            return ""
        if len(plate) > 3:
            return cls.PLATE_PATTERN.sub(r'\1-\2', plate)
        return plate

    @classmethod
    def format_datetime(cls, value: Optional[datetime]) -> str:
        """Render a timestamp as dd/mm/YYYY, HH:MM:SS (empty for None)"""
        if value is None:
            return ""
        return value.strftime(cls.DATETIME_FORMAT)

    @classmethod
    def format_date(cls, value: date) -> str:
        """Render a calendar date as dd/mm/YYYY"""
        return value.strftime(cls.DATE_FORMAT)

    @classmethod
    def format_duration(cls, elapsed: timedelta) -> str:
        """
        Render an elapsed time as whole hours and remaining minutes

        Examples:
            2h 30min, 45min, 0min

        Args:
            elapsed: Elapsed time (negative values render as 0min)

        Returns:
            Duration text
        """
        total_minutes = max(int(elapsed.total_seconds() // 60), 0)
        hours, minutes = divmod(total_minutes, 60)

        if hours > 0:
            return f"{hours}h {minutes}min"
        return f"{minutes}min"

    @classmethod
    def calculate_duration(cls, start: datetime, end: datetime) -> str:
        """Render the time between two timestamps"""
        return cls.format_duration(end - start)
