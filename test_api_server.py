#!/usr/bin/env python3
"""
Test cases for the FastAPI server
"""

import pytest
from fastapi.testclient import TestClient

from portaria.api.server import create_app
from portaria.services.access_control import AccessControlService
from portaria.services.report_service import ReportService


@pytest.fixture
def client(service, clock):
    app = create_app(service=service, reports=ReportService(clock=clock))
    return TestClient(app)


ANA = {"nome": "Ana Silva", "cpf": "123.456.789-00", "destino": "Sala 3", "placa": "abc-1234"}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["visits"] == 0


def test_entry_exit_flow(client, clock):
    response = client.post("/visits/entry", json=ANA)
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Entrada registrada com sucesso para Ana Silva"
    visit = body["data"]
    assert visit["cpf"] == "12345678900"
    assert visit["placa"] == "ABC1234"
    assert visit["saida"] is None
    assert visit["status"] == "Ativa"

    response = client.post("/visits/entry", json=ANA)
    assert response.status_code == 409
    assert response.json() == {
        "status": "error",
        "message": "Este visitante já possui uma entrada ativa. Registre a saída primeiro.",
    }

    active = client.get("/visits/active").json()
    assert [v["id"] for v in active["visits"]] == [visit["id"]]

    clock.advance(hours=2, minutes=30)
    response = client.post(f"/visits/{visit['id']}/exit")
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Saída registrada com sucesso para Ana Silva"
    assert body["data"]["status"] == "Finalizada"
    assert body["data"]["permanencia"] == "2h 30min"

    assert client.get("/visits/active").json()["total"] == 0

    history = client.get("/visits/history", params={"q": "Ana"}).json()
    assert history["total"] == 1
    assert history["visits"][0]["status"] == "Finalizada"


def test_entry_validation_error(client):
    response = client.post("/visits/entry", json={"nome": "Ana", "cpf": "123", "destino": "Sala"})
    assert response.status_code == 400
    assert response.json()["message"] == "CPF deve ter 11 dígitos"

    response = client.post("/visits/entry", json={"cpf": "12345678900"})
    assert response.status_code == 400
    assert response.json()["message"] == "Preencha todos os campos obrigatórios"


def test_repeated_exit_is_informational(client, clock):
    visit = client.post("/visits/entry", json=ANA).json()["data"]
    clock.advance(minutes=45)
    first = client.post(f"/visits/{visit['id']}/exit").json()

    clock.advance(hours=1)
    response = client.post(f"/visits/{visit['id']}/exit")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "info"
    assert body["message"] == "Saída já registrada para Ana Silva"
    assert body["data"]["saida"] == first["data"]["saida"]
    assert body["data"]["permanencia"] == "45min"


def test_exit_unknown_visit(client):
    response = client.post("/visits/missing/exit")
    assert response.status_code == 404


def test_visitor_search_and_prefill(client):
    visit = client.post("/visits/entry", json=ANA).json()["data"]

    found = client.get("/visitors/search", params={"q": "123.456"}).json()
    assert found["total"] == 1
    assert found["visitors"][0]["id"] == visit["visitorId"]

    assert client.get("/visitors/search", params={"q": "Carlos"}).json()["total"] == 0
    assert client.get("/visitors/search", params={"q": " "}).status_code == 400

    visitor = client.get(f"/visitors/{visit['visitorId']}").json()
    assert visitor["nome"] == "Ana Silva"
    assert client.get("/visitors/missing").status_code == 404


def test_active_search_by_plate(client):
    client.post("/visits/entry", json=ANA)
    client.post("/visits/entry", json={"nome": "Bruno", "cpf": "98765432100", "destino": "Sala 1"})

    found = client.get("/visits/active", params={"q": "abc"}).json()
    assert [v["nome"] for v in found["visits"]] == ["Ana Silva"]


def test_report_and_export(client):
    assert client.get("/reports/export").status_code == 404

    client.post("/visits/entry", json=ANA)

    report = client.get("/reports", params={"date_from": "2024-01-01", "date_to": "2024-01-01"}).json()
    assert report["period"] == "Período: 01/01/2024 a 01/01/2024"
    assert (report["total"], report["active"], report["completed"]) == (1, 1, 0)
    assert report["rows"][0]["CPF"] == "123.456.789-00"

    empty = client.get("/reports", params={"date_from": "2024-01-02"}).json()
    assert empty["total"] == 0

    response = client.get("/reports/export", params={"date_to": "2024-01-01"})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert (
        response.headers["content-disposition"]
        == 'attachment; filename="relatorio_visitantes_2024-01-01.csv"'
    )
    assert response.text.splitlines()[0].startswith("Nome,Empresa,CPF")


def test_default_app_reads_store_path(monkeypatch, tmp_path):
    from portaria.config.settings import get_settings

    store_path = tmp_path / "store.json"
    monkeypatch.setenv("STORE_PATH", str(store_path))
    get_settings.cache_clear()
    try:
        client = TestClient(create_app())
        client.post("/visits/entry", json=ANA)
        assert store_path.exists()
        assert isinstance(client.app.state.access_control, AccessControlService)
    finally:
        get_settings.cache_clear()
