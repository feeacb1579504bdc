"""
Terms Templates API - FastAPI router for reusable terms & conditions.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..exceptions import TemplateNotFoundError
from .schemas import TermsModel
from .state import Services, get_services

router = APIRouter(prefix="/api/terms-templates", tags=["terms"])


class TemplateCreate(BaseModel):
    name: str
    country: Optional[str] = None
    data: TermsModel


@router.get("")
async def list_templates(country: Optional[str] = None, services: Services = Depends(get_services)):
    return [t.to_dict() for t in services.terms.list_templates(country=country)]


@router.get("/default")
async def get_default_terms(country: Optional[str] = None, services: Services = Depends(get_services)):
    """Terms a new proposal for this destination starts with."""
    return services.terms.default_terms(country).to_dict()


@router.post("")
async def create_template(req: TemplateCreate, services: Services = Depends(get_services)):
    if not req.name.strip():
        raise HTTPException(status_code=400, detail="Template name is required")
    template = services.terms.save_template(req.name.strip(), req.data.to_terms(), country=req.country)
    return template.to_dict()


@router.delete("/{template_id}")
async def delete_template(template_id: str, services: Services = Depends(get_services)):
    try:
        services.terms.delete_template(template_id)
        return {"success": True, "message": f"Template '{template_id}' deleted"}
    except TemplateNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
