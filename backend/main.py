from dotenv import load_dotenv

# Load environment variables before the config module reads them
load_dotenv()

from fastapi import FastAPI

from catalog_vision import __version__
from catalog_vision.api.v1 import router as v1_router
from catalog_vision.schemas import HealthResponse

app = FastAPI(
    title="Catalog Vision",
    description="Product photo classification and primary color matching for the catalog",
    version=__version__
)

app.include_router(v1_router)


@app.get("/healthz", response_model=HealthResponse)
async def healthz() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(ok=True, version=__version__)
