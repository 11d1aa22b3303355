"""
Catalog Vision API Schemas
Pydantic models for analysis and color matching request/response validation.
"""
from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response."""
    ok: bool = Field(True, description="Service health status")
    version: str = Field(..., description="Service version")
    service: str = Field("catalog-vision", description="Service name")


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str = Field(..., description="Error message")


# ============================================================================
# IMAGE ANALYSIS
# ============================================================================

class AnalysisResponse(BaseModel):
    """Combined predictions for one product photo."""
    position: Optional[str] = Field(
        None,
        description="Front, Back, Side, Top, Bottom or Part Zoom; null without a position model"
    )
    neutral_background: bool = Field(False, description="Border of the photo is nearly uniform")
    product_only: bool = Field(False, description="Photo shows the product alone, without a staged scene")
    dominant_color: Optional[str] = Field(
        None,
        pattern=r"^#[0-9a-f]{6}$",
        description="Dominant garment color as lower-case #rrggbb"
    )


class ClassifierStatus(BaseModel):
    """State of one classifier model."""
    name: str
    state: str = Field(..., description="unloaded, loaded or absent")
    model_path: str
    feature_mode: str
    feature_length: int
    num_samples: Optional[int] = None
    k: Optional[int] = None
    classes: Optional[List[str]] = None


class ModelsResponse(BaseModel):
    """Status of the classifiers used for analysis."""
    classifiers: Dict[str, ClassifierStatus]


# ============================================================================
# COLOR MATCHING
# ============================================================================

class PrimaryColorEntry(BaseModel):
    """A catalog primary color; sub-colors reference their root through parent_id."""
    id: Optional[str] = Field(None, description="Color identifier")
    name: str = Field(..., min_length=1, description="Display name")
    hex_code: Optional[str] = Field(None, description="Hex code, inherited from the parent when absent")
    parent_id: Optional[str] = Field(None, description="Root color id for sub-colors")
    manufacturer_id: Optional[str] = Field(None, description="Manufacturer owning a sub-color")


class ColorMatchRequest(BaseModel):
    """Find the closest primary color to a detected color."""
    hex: str = Field(..., description="Color to match, 6 hex digits with optional #")
    candidates: List[PrimaryColorEntry] = Field(..., description="Primary colors to choose from")
    roots_only: bool = Field(False, description="Only match against root colors")
    product_sku: Optional[str] = Field(
        None,
        min_length=1,
        description="Product SKU; when given, the SKU of the matching color variant is returned"
    )


class ColorMatchResponse(BaseModel):
    """Closest primary color, or null."""
    match: Optional[PrimaryColorEntry] = None
    distance: Optional[float] = Field(None, ge=0.0, description="Weighted HSV distance to the match")
    full_name: Optional[str] = Field(None, description="Parent name followed by the color name")
    variant_sku: Optional[str] = Field(None, description="SKU of the color variant for product_sku")
