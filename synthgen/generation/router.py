"""Synthetic data generation API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Request

from synthgen.core.exceptions import TemplateNotFound
from synthgen.templates.schemas import SyntheticDataTemplate
from .schemas import GenerateRequest, GenerationResult, GenerationSummary
from .service import GenerationOrchestrator

router = APIRouter(prefix="/synthetic", tags=["synthetic"])


def get_orchestrator(request: Request) -> GenerationOrchestrator:
    """The orchestrator created with the app."""
    return request.app.state.orchestrator


@router.get("/templates")
async def list_templates(
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> dict:
    """List registered templates."""
    return {
        "templates": [
            {
                "template_id": t.template_id,
                "template_name": t.template_name,
                "data_type": t.data_type.value,
                "target_engines": t.target_engines,
                "fields": t.field_names,
            }
            for t in orchestrator.templates.list_templates()
        ]
    }


@router.get("/templates/{template_id}", response_model=SyntheticDataTemplate)
async def get_template(
    template_id: str,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> SyntheticDataTemplate:
    """Get a registered template."""
    try:
        return orchestrator.templates.get(template_id)
    except TemplateNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.post("/templates", status_code=201)
async def register_template(
    template: SyntheticDataTemplate,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> dict:
    """
    Register (or replace) a template.

    Formulas are compiled and rules ordered at registration; a template
    that fails either step is rejected with 422.
    """
    try:
        plan = orchestrator.register_template(template)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    return {
        "template_id": plan.template_id,
        "rule_order": plan.field_order,
        "cyclic_fields": list(plan.cyclic_fields),
    }


@router.get("/lookups")
async def list_lookup_tables(
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> dict:
    """List lookup tables and their values."""
    lookups = orchestrator.lookups
    return {"lookup_tables": {name: list(lookups.get(name)) for name in lookups.names()}}


@router.post("/generate/{template_id}", response_model=GenerationResult)
def generate(
    template_id: str,
    request: GenerateRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> GenerationResult:
    """
    Generate a batch of synthetic records from a template.

    Pass a seed for reproducible output. The response carries the accepted
    records, quality metrics, provenance and validation results.
    """
    try:
        return orchestrator.generate(
            template_id,
            request.record_count,
            request,
        )
    except TemplateNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


@router.get("/summary", response_model=GenerationSummary)
async def generation_summary(
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> GenerationSummary:
    """Summary of recent generation runs."""
    return orchestrator.get_generation_summary()
