"""
Travel Pricing API - FastAPI application.
"""
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from ..config.logger import setup_logging
from ..config.pricing_settings import PricingSettings
from ..config.settings import get_settings
from ..exceptions import ProposalValidationError, StaleSnapshotError
from ..services.proposal_service import ContactDetails
from .schemas import (
    PreviewRequest,
    PricingSettingsModel,
    ProposalUpdate,
    RecalculateRequest,
    SendRequest,
    TermsModel,
)
from .slabs_api import router as slabs_router
from .state import Services, get_services, shutdown_services
from .terms_api import router as terms_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(get_settings().log_level)
    yield
    shutdown_services()


app = FastAPI(
    title="Travel Pricing API",
    description="Pricing, proposal and markup management for travel enquiries",
    version="1.0.0",
    lifespan=lifespan,
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(slabs_router)
app.include_router(terms_router)


@app.get("/")
async def root():
    return {"status": "online", "message": "Travel Pricing API Active"}


@app.get("/system/status")
async def get_status(services: Services = Depends(get_services)):
    settings = services.engine.settings_provider.get_pricing_settings()
    return {
        "engine_active": True,
        "country_rules_count": len(services.engine.country_table.list_rules()),
        "tax_countries": services.engine.tax_table.countries(),
        "slabs": services.slabs.get_stats(),
        "pricing_settings": settings.to_dict(),
    }


# ----------------------------------------------------------------------
# Pricing
# ----------------------------------------------------------------------

@app.post("/calculate")
async def calculate_quote(req: PreviewRequest, services: Services = Depends(get_services)):
    """Run the pricing pipeline without persisting."""
    snapshot = services.pricing.preview(req.to_pricing_request(req.enquiry_id))
    return jsonable_encoder(snapshot)


@app.post("/enquiries/{enquiry_id}/pricing")
async def recalculate_pricing(
    enquiry_id: str,
    req: RecalculateRequest,
    services: Services = Depends(get_services),
):
    """Recalculate and persist an enquiry's pricing."""
    services.proposals.track_pricing(services.sync, enquiry_id)
    try:
        snapshot = services.pricing.recalculate(
            req.to_pricing_request(enquiry_id),
            expected_version=req.expected_version,
        )
    except StaleSnapshotError as e:
        raise HTTPException(status_code=409, detail={
            "message": str(e),
            "current_version": e.current_version,
        })
    return {
        "version": services.pricing.version(enquiry_id),
        "pending": services.sync.has_pending(enquiry_id),
        "snapshot": jsonable_encoder(snapshot),
    }


@app.get("/enquiries/{enquiry_id}/pricing")
async def get_pricing(enquiry_id: str, services: Services = Depends(get_services)):
    snapshot = services.pricing.get(enquiry_id)
    if snapshot is None:
        raise HTTPException(status_code=404, detail=f"No pricing saved for enquiry '{enquiry_id}'")
    return {
        "version": services.pricing.version(enquiry_id),
        "pending": services.sync.has_pending(enquiry_id),
        "snapshot": jsonable_encoder(snapshot),
    }


@app.get("/settings/pricing")
async def get_pricing_settings(services: Services = Depends(get_services)):
    return services.engine.settings_provider.get_pricing_settings().to_dict()


@app.put("/settings/pricing")
async def update_pricing_settings(req: PricingSettingsModel, services: Services = Depends(get_services)):
    provider = services.engine.settings_provider
    if not hasattr(provider, "save"):
        raise HTTPException(status_code=400, detail="Pricing settings are read-only")
    provider.save(PricingSettings(**req.model_dump()))
    return provider.get_pricing_settings().to_dict()


# ----------------------------------------------------------------------
# Proposals
# ----------------------------------------------------------------------

@app.get("/enquiries/{enquiry_id}/proposal")
async def get_proposal(enquiry_id: str, services: Services = Depends(get_services)):
    services.sync.flush(enquiry_id)
    return services.proposals.get_draft(enquiry_id).to_dict()


@app.put("/enquiries/{enquiry_id}/proposal")
async def update_proposal(enquiry_id: str, req: ProposalUpdate, services: Services = Depends(get_services)):
    proposals = services.proposals
    if req.reset_status:
        proposals.reset_status(enquiry_id)
    if req.accommodations is not None:
        proposals.set_accommodations(enquiry_id, req.accommodations)
    if req.apply_default_terms:
        proposals.apply_default_terms(enquiry_id, req.country)
    return proposals.get_draft(enquiry_id).to_dict()


@app.put("/enquiries/{enquiry_id}/proposal/terms")
async def update_proposal_terms(enquiry_id: str, req: TermsModel, services: Services = Depends(get_services)):
    return services.proposals.update_terms(enquiry_id, req.to_terms()).to_dict()


@app.post("/enquiries/{enquiry_id}/proposal/send")
async def send_proposal(enquiry_id: str, req: SendRequest, services: Services = Depends(get_services)):
    # Committed pricing reaches the draft through its subscription
    services.sync.flush(enquiry_id)
    try:
        record = await services.proposals.send_proposal(
            enquiry_id,
            ContactDetails(**req.contact.model_dump()),
            method=req.method,
        )
    except ProposalValidationError as e:
        raise HTTPException(status_code=400, detail={"errors": e.errors})
    return {"success": True, "record": record.to_dict()}


@app.get("/enquiries/{enquiry_id}/proposal/history")
async def get_send_history(enquiry_id: str, services: Services = Depends(get_services)):
    return [asdict(r) for r in services.proposals.send_history(enquiry_id)]


@app.get("/enquiries/{enquiry_id}/proposal/summary", response_class=PlainTextResponse)
async def get_proposal_summary(
    enquiry_id: str,
    show_breakup: bool = True,
    separate_adult_child: bool = True,
    include_terms: bool = True,
    services: Services = Depends(get_services),
):
    services.sync.flush(enquiry_id)
    return services.proposals.render_summary(
        enquiry_id,
        show_breakup=show_breakup,
        separate_adult_child=separate_adult_child,
        include_terms=include_terms,
    )


@app.get("/notifications")
async def get_notifications(limit: int = 20, level: Optional[str] = None, services: Services = Depends(get_services)):
    items = services.notifier.recent(limit)
    if level:
        items = [n for n in items if n.level == level]
    return [asdict(n) for n in items]
