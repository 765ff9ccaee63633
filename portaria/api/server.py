"""
FastAPI server for visitor access control

Provides REST endpoints for the gatehouse front-end: entry and exit
registration, searches, period reports and CSV export
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from portaria.api.middleware.audit_logger import audit_log_middleware
from portaria.config.settings import get_settings
from portaria.exceptions import AccessControlError
from portaria.models.visit import Visit
from portaria.models.visitor import Visitor
from portaria.services.access_control import AccessControlService
from portaria.services.report_service import ReportService
from portaria.workers.store_worker.local_store import LocalStore

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


# Request/Response Models
class EntryForm(BaseModel):
    """Entry form submission (raw values, normalized by the service)"""

    nome: Optional[str] = None
    empresa: Optional[str] = None
    cpf: Optional[str] = None
    placa: Optional[str] = None
    destino: Optional[str] = None


class ApiResponse(BaseModel):
    """Result of a state-changing request"""
    status: str
    message: str
    data: Optional[Dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=datetime.now)


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    timestamp: datetime
    version: str
    visitors: int
    visits: int
    active_visits: int


def get_service(request: Request) -> AccessControlService:
    return request.app.state.access_control


def get_report_service(request: Request) -> ReportService:
    return request.app.state.reports


def visitor_payload(visitor: Visitor) -> Dict[str, Any]:
    return visitor.model_dump(by_alias=True, mode="json")


def visit_payload(visit: Visit, reports: ReportService) -> Dict[str, Any]:
    """Persisted visit fields plus status and time spent inside"""
    payload = visit.model_dump(by_alias=True, mode="json")
    payload["status"] = visit.status
    payload["permanencia"] = reports.render_visit(visit)["Tempo de Permanência"]
    return payload


def create_app(
    service: Optional[AccessControlService] = None,
    reports: Optional[ReportService] = None,
) -> FastAPI:
    """
    Create and configure FastAPI application

    Args:
        service: Access control context (built from STORE_PATH when omitted)
        reports: Report renderer (built from settings when omitted)

    Returns:
        Configured FastAPI app
    """
    settings = get_settings()

    app = FastAPI(
        title="Portaria API",
        description="Visitor access control: entries, exits, history and reports",
        version=API_VERSION,
    )

    app.state.access_control = service or AccessControlService(LocalStore(settings.store_path))
    app.state.reports = reports or ReportService(
        filename_prefix=settings.export_filename_prefix,
        clock=app.state.access_control.clock,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Audit logging middleware (logs entries and exits)
    app.middleware("http")(audit_log_middleware)

    @app.exception_handler(AccessControlError)
    async def access_control_error_handler(request: Request, exc: AccessControlError):
        """Validation, conflict and not-found errors carry a user-facing message"""
        return JSONResponse(
            status_code=exc.status_code,
            content={"status": "error", "message": exc.message},
        )

    # Health check endpoint
    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    def health_check(service: AccessControlService = Depends(get_service)):
        """Service status and collection sizes"""
        return HealthResponse(
            status="healthy",
            timestamp=datetime.now(),
            version=API_VERSION,
            visitors=len(service.visitors),
            visits=len(service.visits),
            active_visits=len(service.active_visits()),
        )

    # Visitor directory
    @app.get("/visitors/search", response_model=Dict[str, Any], tags=["Visitors"])
    def search_visitors(
        q: Optional[str] = None,
        service: AccessControlService = Depends(get_service),
    ):
        """
        Search visitors by name or CPF

        Returns:
            Matching visitors (empty list when none)
        """
        visitors = service.search_visitors(q)
        return {
            "visitors": [visitor_payload(visitor) for visitor in visitors],
            "total": len(visitors),
        }

    @app.get("/visitors/{visitor_id}", response_model=Dict[str, Any], tags=["Visitors"])
    def get_visitor(
        visitor_id: str,
        service: AccessControlService = Depends(get_service),
    ):
        """Get a visitor to pre-fill the entry form"""
        return visitor_payload(service.get_visitor(visitor_id))

    # Visit ledger
    @app.post("/visits/entry", response_model=ApiResponse, status_code=201, tags=["Visits"])
    def register_entry(
        form: EntryForm,
        service: AccessControlService = Depends(get_service),
        reports: ReportService = Depends(get_report_service),
    ):
        """
        Register a visitor's entry

        Returns:
            The new active visit

        Errors:
            400 when a required field is missing or the CPF is invalid,
            409 when the visitor already has an active visit
        """
        visit = service.register_entry(
            full_name=form.nome,
            national_id=form.cpf,
            destination=form.destino,
            company=form.empresa,
            plate=form.placa,
        )
        return ApiResponse(
            status="success",
            message=f"Entrada registrada com sucesso para {visit.full_name}",
            data=visit_payload(visit, reports),
        )

    @app.post("/visits/{visit_id}/exit", response_model=ApiResponse, tags=["Visits"])
    def register_exit(
        visit_id: str,
        service: AccessControlService = Depends(get_service),
        reports: ReportService = Depends(get_report_service),
    ):
        """Register a visitor's exit (404 for unknown visits)"""
        existing = service.visits.find_by_id(visit_id)
        already_completed = existing is not None and not existing.is_active

        visit = service.register_exit(visit_id)
        if already_completed:
            return ApiResponse(
                status="info",
                message=f"Saída já registrada para {visit.full_name}",
                data=visit_payload(visit, reports),
            )
        return ApiResponse(
            status="success",
            message=f"Saída registrada com sucesso para {visit.full_name}",
            data=visit_payload(visit, reports),
        )

    @app.get("/visits/active", response_model=Dict[str, Any], tags=["Visits"])
    def active_visits(
        q: Optional[str] = None,
        service: AccessControlService = Depends(get_service),
        reports: ReportService = Depends(get_report_service),
    ):
        """Active visits, optionally filtered by name or plate"""
        visits = service.active_visits(q)
        return {
            "visits": [visit_payload(visit, reports) for visit in visits],
            "total": len(visits),
        }

    @app.get("/visits/history", response_model=Dict[str, Any], tags=["Visits"])
    def visit_history(
        q: Optional[str] = None,
        service: AccessControlService = Depends(get_service),
        reports: ReportService = Depends(get_report_service),
    ):
        """Every visit matching a name or CPF, most recent first"""
        visits = service.search_history(q)
        return {
            "visits": [visit_payload(visit, reports) for visit in visits],
            "total": len(visits),
        }

    # Reports
    @app.get("/reports", response_model=Dict[str, Any], tags=["Reports"])
    def visit_report(
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        service: AccessControlService = Depends(get_service),
        reports: ReportService = Depends(get_report_service),
    ):
        """
        Visits entered between two days (both inclusive)

        Returns:
            Period label, summary counts and rendered rows
        """
        report = service.report(date_from, date_to)
        return {
            "period": report.period_label,
            "total": report.total,
            "active": report.active,
            "completed": report.completed,
            "rows": reports.render_rows(report),
        }

    @app.get("/reports/export", tags=["Reports"])
    def export_report(
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        service: AccessControlService = Depends(get_service),
        reports: ReportService = Depends(get_report_service),
    ):
        """Download the period report as CSV (404 when it is empty)"""
        report = service.report(date_from, date_to)
        content = reports.export_csv(report)
        filename = reports.export_filename()

        return Response(
            content=content,
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    return app
