"""
Report Service - Render visit reports and export them as CSV

Turns a VisitReport into display rows (formatted CPF, plate, timestamps,
duration and status) and into the downloadable CSV file.
"""

import csv
import io
import logging
from datetime import date, datetime
from typing import Callable, Dict, List, Optional

from portaria.exceptions import NotFoundError
from portaria.models.visit import Visit, VisitReport
from portaria.utils.field_formatter import FieldFormatter

logger = logging.getLogger(__name__)

EMPTY_EXPORT_MESSAGE = "Nenhuma visita encontrada para exportar"

CSV_HEADERS = [
    "Nome",
    "Empresa",
    "CPF",
    "Placa",
    "Destino",
    "Entrada",
    "Saída",
    "Tempo de Permanência",
    "Status",
]


class ReportService:
    """Renders reports for display and CSV export"""

    def __init__(
        self,
        filename_prefix: str = "relatorio_visitantes",
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize report service

        Args:
            filename_prefix: Prefix of the exported file name
            clock: Returns the current time (durations of active visits)
        """
        self.filename_prefix = filename_prefix
        self.clock = clock

    def render_visit(self, visit: Visit, placeholder: str = "-") -> Dict[str, str]:
        """
        Format one visit for display

        Args:
            visit: Visit to render
            placeholder: Text for missing company, plate and exit time

        Returns:
            Column name -> formatted value, in CSV_HEADERS order
        """
        return {
            "Nome": visit.full_name,
            "Empresa": visit.company or placeholder,
            "CPF": FieldFormatter.format_cpf(visit.national_id),
            "Placa": FieldFormatter.format_plate(visit.plate) or placeholder,
            "Destino": visit.destination,
            "Entrada": FieldFormatter.format_datetime(visit.entry_time),
            "Saída": FieldFormatter.format_datetime(visit.exit_time) or placeholder,
            "Tempo de Permanência": FieldFormatter.format_duration(
                visit.duration(now=self.clock())
            ),
            "Status": visit.status,
        }

    def render_rows(self, report: VisitReport) -> List[Dict[str, str]]:
        return [self.render_visit(visit) for visit in report.visits]

    def export_filename(self, day: Optional[date] = None) -> str:
        """relatorio_visitantes_<YYYY-MM-DD>.csv for the given day (default today)"""
        day = day or self.clock().date()
        return f"{self.filename_prefix}_{day.isoformat()}.csv"

    def export_csv(self, report: VisitReport) -> str:
        """
        Render a report as CSV

        The header row is unquoted. Every data field is double-quoted; missing
        values are empty strings.

        Args:
            report: Report to export

        Returns:
            CSV text with one header row

        Raises:
            NotFoundError: If the report has no visits
        """
        if not report.visits:
            logger.warning(f"Export rejected: no visits ({report.period_label})")
            raise NotFoundError(EMPTY_EXPORT_MESSAGE)

        buffer = io.StringIO()
        buffer.write(",".join(CSV_HEADERS) + "\n")
        writer = csv.DictWriter(
            buffer,
            fieldnames=CSV_HEADERS,
            quoting=csv.QUOTE_ALL,
            lineterminator="\n",
        )
        for visit in report.visits:
            writer.writerow(self.render_visit(visit, placeholder=""))

        logger.info(f"Exported {report.total} visit(s) ({report.period_label})")
        return buffer.getvalue()
