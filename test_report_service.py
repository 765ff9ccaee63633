#!/usr/bin/env python3
"""
Test cases for report rendering and CSV export
"""

import csv
import io
from datetime import date

import pytest

from portaria.exceptions import NotFoundError
from portaria.services.report_service import CSV_HEADERS, ReportService


@pytest.fixture
def reports(clock):
    return ReportService(clock=clock)


def test_render_rows(service, reports, clock):
    done = service.register_entry(
        "Ana Silva", "12345678900", "Sala 3", company="ACME", plate="abc1234"
    )
    clock.advance(minutes=45)
    service.register_exit(done.id)
    service.register_entry("Bruno Costa", "98765432100", "Sala 1")
    clock.advance(hours=1, minutes=5)

    rows = reports.render_rows(service.report())

    assert rows[0] == {
        "Nome": "Bruno Costa",
        "Empresa": "-",
        "CPF": "987.654.321-00",
        "Placa": "-",
        "Destino": "Sala 1",
        "Entrada": "01/01/2024, 10:45:00",
        "Saída": "-",
        "Tempo de Permanência": "1h 5min",
        "Status": "Ativa",
    }
    assert rows[1] == {
        "Nome": "Ana Silva",
        "Empresa": "ACME",
        "CPF": "123.456.789-00",
        "Placa": "ABC-1234",
        "Destino": "Sala 3",
        "Entrada": "01/01/2024, 10:00:00",
        "Saída": "01/01/2024, 10:45:00",
        "Tempo de Permanência": "45min",
        "Status": "Finalizada",
    }


def test_export_csv(service, reports, clock):
    visit = service.register_entry("Ana \"Aninha\" Silva", "12345678900", "Sala 3")
    clock.advance(hours=2, minutes=30)
    service.register_exit(visit.id)
    service.register_entry("Bruno Costa", "98765432100", "Sala 1")

    content = reports.export_csv(service.report(date(2024, 1, 1), date(2024, 1, 1)))
    lines = content.splitlines()

    assert lines[0] == ",".join(CSV_HEADERS)
    assert lines[0].startswith("Nome,Empresa,CPF,Placa")
    assert len(lines) == 3
    # Most recent entry first; empty exit for active visits
    assert lines[1] == (
        '"Bruno Costa","","987.654.321-00","","Sala 1",'
        '"01/01/2024, 12:30:00","","0min","Ativa"'
    )

    rows = list(csv.DictReader(io.StringIO(content)))
    assert rows[1]["Nome"] == 'Ana "Aninha" Silva'
    assert rows[1]["Tempo de Permanência"] == "2h 30min"
    assert rows[1]["Status"] == "Finalizada"


def test_export_empty_period(service, reports):
    service.register_entry("Ana Silva", "12345678900", "Sala 3")

    with pytest.raises(NotFoundError, match="Nenhuma visita encontrada para exportar"):
        reports.export_csv(service.report(date(2023, 1, 1), date(2023, 12, 31)))


def test_export_filename(clock):
    assert ReportService(clock=clock).export_filename() == "relatorio_visitantes_2024-01-01.csv"
    assert (
        ReportService(filename_prefix="visitas").export_filename(date(2024, 2, 29))
        == "visitas_2024-02-29.csv"
    )
