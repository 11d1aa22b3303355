"""
Catalog Vision API Routes
Image analysis, color matching and model status endpoints.
"""
from typing import Any, Dict

from fastapi import APIRouter, File, HTTPException, UploadFile

from catalog_vision.schemas import (
    AnalysisResponse, ColorMatchRequest, ColorMatchResponse, ErrorResponse, ModelsResponse,
    PrimaryColorEntry
)
from catalog_vision.services.colors.matching import ColorCatalog, PrimaryColor, variant_sku
from catalog_vision.services.errors import FeatureLengthMismatch
from catalog_vision.services.imaging import validate_file_upload
from catalog_vision.services.orchestrator import get_orchestrator
from catalog_vision.utils.logging import get_logger
from catalog_vision.utils.metrics import get_metrics

router = APIRouter(prefix="/v1", tags=["Catalog Vision"])


@router.post("/analyze",
            response_model=AnalysisResponse,
            summary="Analyze Product Image",
            description="Detect position, neutral background, product-only and dominant color",
            responses={
                400: {"model": ErrorResponse, "description": "Not an image file"},
                413: {"model": ErrorResponse, "description": "File too large"},
                415: {"model": ErrorResponse, "description": "Unsupported media type"},
                500: {"model": ErrorResponse, "description": "Persisted model does not match its feature configuration"},
            })
async def analyze_image(
    file: UploadFile = File(..., description="Product photo (JPEG, PNG or WebP)")
) -> AnalysisResponse:
    """
    Analyze one uploaded product photo.
    
    A photo that passes format checks but fails to decode yields the
    default result rather than an error.
    """
    content = await file.read()
    validate_file_upload(file, content)
    
    try:
        result = get_orchestrator().analyze(content)
    except FeatureLengthMismatch as e:
        get_logger().error(f"Model configuration error: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    
    return AnalysisResponse(**result.to_dict())


@router.post("/colors/match",
            response_model=ColorMatchResponse,
            summary="Match Primary Color",
            description="Closest catalog primary color by hue-weighted HSV distance")
async def match_color(request: ColorMatchRequest) -> ColorMatchResponse:
    catalog = ColorCatalog([PrimaryColor(**entry.model_dump()) for entry in request.candidates])
    
    if request.roots_only:
        match, distance = catalog.closest_root(request.hex)
    else:
        match, distance = catalog.closest(request.hex)
    if match is None:
        return ColorMatchResponse()
    
    return ColorMatchResponse(
        match=PrimaryColorEntry(
            id=match.id,
            name=match.name,
            hex_code=match.hex_code,
            parent_id=match.parent_id,
            manufacturer_id=match.manufacturer_id,
        ),
        distance=distance,
        full_name=catalog.full_name(match),
        variant_sku=variant_sku(request.product_sku, match) if request.product_sku else None,
    )


@router.get("/models", response_model=ModelsResponse, summary="Classifier Status")
async def models_status() -> ModelsResponse:
    orchestrator = get_orchestrator()
    for classifier in (orchestrator.position_classifier, orchestrator.product_only_classifier):
        classifier.is_available()
    return ModelsResponse(classifiers=orchestrator.model_status())


@router.get("/metrics", summary="Analysis Metrics")
async def metrics_summary() -> Dict[str, Any]:
    return get_metrics().get_summary()
