"""
Slabs API - FastAPI router for markup slab management.
"""
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse
from pydantic import BaseModel
from starlette.background import BackgroundTask

from ..engine.models import MarkupSlab
from ..exceptions import SlabNotFoundError
from .state import Services, get_services

router = APIRouter(prefix="/api/slabs", tags=["slabs"])


class SlabCreate(BaseModel):
    """Request model for creating a slab."""
    id: Optional[str] = None
    name: str
    min_amount: float = 0.0
    max_amount: Optional[float] = None
    markup_type: str = "percentage"
    markup_value: float = 0.0
    is_active: bool = True


class SlabUpdate(BaseModel):
    """Request model for updating a slab."""
    name: Optional[str] = None
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None
    markup_type: Optional[str] = None
    markup_value: Optional[float] = None
    is_active: Optional[bool] = None


class SlabResponse(BaseModel):
    id: str
    name: str
    min_amount: float
    max_amount: Optional[float]
    markup_type: str
    markup_value: float
    is_active: bool


class ValidationResponse(BaseModel):
    valid: bool
    errors: list[str]
    warnings: list[str]


def _to_slab(data: SlabCreate) -> MarkupSlab:
    values = data.model_dump()
    values["id"] = values["id"] or ""
    return MarkupSlab(**values)


# Endpoints

@router.get("", response_model=list[SlabResponse])
async def list_slabs(include_inactive: bool = True, services: Services = Depends(get_services)):
    """List markup slabs in match order."""
    slabs = services.slabs.list_slabs(include_inactive=include_inactive)
    return [SlabResponse(**slab.to_dict()) for slab in slabs]


@router.get("/stats")
async def get_stats(services: Services = Depends(get_services)):
    return services.slabs.get_stats()


@router.get("/export")
async def export_slabs(format: str = "xlsx", services: Services = Depends(get_services)):
    """Download slabs as an Excel workbook or CSV."""
    if format not in ("xlsx", "csv"):
        raise HTTPException(status_code=400, detail="Format must be 'xlsx' or 'csv'")
    export_dir = tempfile.mkdtemp()
    output = Path(export_dir) / f"markup_slabs.{format}"
    services.slabs.export_slabs(output)
    media_type = (
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        if format == "xlsx" else "text/csv"
    )
    return FileResponse(
        output,
        media_type=media_type,
        filename=output.name,
        background=BackgroundTask(shutil.rmtree, export_dir, ignore_errors=True),
    )


@router.get("/{slab_id}", response_model=SlabResponse)
async def get_slab(slab_id: str, services: Services = Depends(get_services)):
    slab = services.slabs.get_slab(slab_id)
    if not slab:
        raise HTTPException(status_code=404, detail=f"Slab '{slab_id}' not found")
    return SlabResponse(**slab.to_dict())


@router.post("", response_model=SlabResponse)
async def create_slab(slab_data: SlabCreate, services: Services = Depends(get_services)):
    slab = _to_slab(slab_data)

    validation = services.slabs.validate_slab(slab)
    if not validation.valid:
        raise HTTPException(status_code=400, detail={"errors": validation.errors})

    try:
        created = services.slabs.create_slab(slab)
        return SlabResponse(**created.to_dict())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/{slab_id}", response_model=SlabResponse)
async def update_slab(slab_id: str, updates: SlabUpdate, services: Services = Depends(get_services)):
    current = services.slabs.get_slab(slab_id)
    if current is None:
        raise HTTPException(status_code=404, detail=f"Slab '{slab_id}' not found")

    # Only fields sent in the body; explicit null clears max_amount
    update_dict = updates.model_dump(exclude_unset=True)
    cleared = [key for key, value in update_dict.items() if value is None and key != "max_amount"]
    if cleared:
        raise HTTPException(status_code=400, detail={"errors": [f"{key} cannot be null" for key in cleared]})
    candidate = MarkupSlab(**{**current.to_dict(), **update_dict})
    validation = services.slabs.validate_slab(candidate)
    if not validation.valid:
        raise HTTPException(status_code=400, detail={"errors": validation.errors})

    try:
        updated = services.slabs.update_slab(slab_id, update_dict)
        return SlabResponse(**updated.to_dict())
    except SlabNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{slab_id}")
async def delete_slab(slab_id: str, services: Services = Depends(get_services)):
    try:
        services.slabs.delete_slab(slab_id)
        return {"success": True, "message": f"Slab '{slab_id}' deleted"}
    except SlabNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/validate", response_model=ValidationResponse)
async def validate_slab(slab_data: SlabCreate, services: Services = Depends(get_services)):
    """Validate a slab without saving."""
    result = services.slabs.validate_slab(_to_slab(slab_data))
    return ValidationResponse(valid=result.valid, errors=result.errors, warnings=result.warnings)
