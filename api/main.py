from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import List, Optional
import logging
import sqlalchemy.exc

from config.settings import Settings, get_settings
from core.exceptions import NoListingsError, ProductNotFoundError
from core.pipeline.product_service import ProductService
from core.scheduler.refresh import RefreshScheduler

from .models import (
    CompareRequest,
    CompareResponse,
    ErrorResponse,
    HistoryResponse,
    Listing,
    PricePoint,
    Product,
    ProductRequest,
    ProductResponse,
    PruneResponse,
    RecommendationResponse,
    RefreshReportResponse,
    TriggerResponse,
)

logger = logging.getLogger("api")

NOT_FOUND = {404: {"model": ErrorResponse, "description": "Product or listing not found"}}
NO_DATA = {503: {"model": ErrorResponse, "description": "No listings from any source"}}


def get_service(request: Request) -> ProductService:
    return request.app.state.service


def get_scheduler(request: Request) -> RefreshScheduler:
    return request.app.state.scheduler


def product_response(product, listings) -> ProductResponse:
    return ProductResponse(
        product=Product.model_validate(product),
        listings=[Listing.model_validate(listing) for listing in listings],
        count=len(listings),
    )


def create_app(settings: Optional[Settings] = None, service: Optional[ProductService] = None) -> FastAPI:
    """Build the API around one settings object.

    The product service and refresh scheduler live on ``app.state``; tables
    are created and the auto-refresh timer started when the app starts up.
    """
    settings = settings or get_settings()
    service = service or ProductService.from_settings(settings)
    scheduler = RefreshScheduler.from_settings(service, settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.service.gateway.create_tables()
        if settings.AUTO_REFRESH_ENABLED:
            app.state.scheduler.start()
        yield
        app.state.scheduler.stop()

    app = FastAPI(
        title="Price Comparison API",
        description="REST API for tracking product prices across e-commerce platforms",
        version=settings.PROJECT_VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.service = service
    app.state.scheduler = scheduler

    # Enable CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, replace with specific origins
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)
    register_error_handlers(app)
    return app


def register_routes(app: FastAPI):

    @app.get("/", tags=["General"])
    def root():
        """Root endpoint providing API information."""
        return {
            "name": "Price Comparison API",
            "version": app.version,
            "description": "API for comparing and tracking product prices across platforms",
            "endpoints": {
                "GET /": "This information",
                "POST /products": "Track a product and fetch its prices",
                "GET /products": "List or search tracked products",
                "GET /products/{product_id}": "Get a product with its listings",
                "GET /products/{product_id}/listings": "Get the stored listings of a product",
                "POST /products/{product_id}/refresh": "Fetch fresh prices for a product",
                "GET /products/{product_id}/recommendation": "Where to buy a product",
                "GET /listings/{listing_id}/history": "Price history of a listing",
                "POST /compare": "Compare prices without storing them",
                "POST /refresh": "Refresh every tracked product",
                "DELETE /history": "Delete old price history",
            },
        }

    @app.post("/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED,
              responses=NO_DATA, tags=["Products"])
    def add_product(request: ProductRequest, service: ProductService = Depends(get_service)):
        """Track a product by name. An already tracked product is returned as stored."""
        product, listings = service.add_product(request.name)
        return product_response(product, listings)

    @app.get("/products", response_model=List[Product], tags=["Products"])
    def list_products(
        search: Optional[str] = Query(None, description="Filter by name"),
        limit: int = Query(50, ge=1, le=500),
        service: ProductService = Depends(get_service),
    ):
        """List tracked products, optionally filtered by name."""
        if search:
            products = service.gateway.search_products(search, limit)
        else:
            products = service.gateway.list_products(limit)
        return [Product.model_validate(p) for p in products]

    @app.get("/products/{product_id}", response_model=ProductResponse, responses=NOT_FOUND,
             tags=["Products"])
    def get_product(product_id: int, service: ProductService = Depends(get_service)):
        product = service.get_product(product_id)
        return product_response(product, service.gateway.get_listings(product_id))

    @app.get("/products/{product_id}/listings", response_model=List[Listing], responses=NOT_FOUND,
             tags=["Products"])
    def get_listings(product_id: int, service: ProductService = Depends(get_service)):
        service.get_product(product_id)
        return [Listing.model_validate(x) for x in service.gateway.get_listings(product_id)]

    @app.post("/products/{product_id}/refresh", response_model=ProductResponse,
              responses={**NOT_FOUND, **NO_DATA}, tags=["Products"])
    def refresh_product(product_id: int, service: ProductService = Depends(get_service)):
        """Fetch fresh prices for one product and store them."""
        listings = service.refresh_product(product_id)
        return product_response(service.get_product(product_id), listings)

    @app.get("/products/{product_id}/recommendation", response_model=RecommendationResponse,
             responses=NOT_FOUND, tags=["Products"])
    def recommend(product_id: int, service: ProductService = Depends(get_service)):
        recommendation = service.recommend(product_id)
        if recommendation is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"No priced listings stored for product {product_id}",
            )
        return RecommendationResponse(
            best_price=Listing.model_validate(recommendation.best_price),
            best_rated=Listing.model_validate(recommendation.best_rated),
            price_gap=recommendation.price_gap,
            gap_percent=recommendation.gap_percent,
            advice=recommendation.advice,
        )

    @app.get("/listings/{listing_id}/history", response_model=HistoryResponse, responses=NOT_FOUND,
             tags=["History"])
    def price_history(
        listing_id: int,
        days: Optional[int] = Query(30, ge=1, description="Number of days to look back"),
        service: ProductService = Depends(get_service),
    ):
        listing = service.gateway.get_listing(listing_id)
        if listing is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Listing {listing_id} not found",
            )
        points = service.gateway.get_price_history(listing_id, days)
        return HistoryResponse(
            listing_id=listing_id,
            platform=listing.platform,
            days=days,
            points=[PricePoint.model_validate(p) for p in points],
            count=len(points),
        )

    @app.post("/compare", response_model=CompareResponse, responses=NO_DATA, tags=["Products"])
    def compare(request: CompareRequest, service: ProductService = Depends(get_service)):
        """Compare prices across platforms without storing anything."""
        listings = service.compare(request.name)
        return CompareResponse(
            name=request.name,
            listings=[Listing.model_validate(x) for x in listings],
            count=len(listings),
        )

    @app.post("/refresh", response_model=TriggerResponse, status_code=status.HTTP_202_ACCEPTED,
              tags=["Refresh"])
    def trigger_refresh(
        wait: bool = Query(False, description="Wait for the pass to finish"),
        scheduler: RefreshScheduler = Depends(get_scheduler),
    ):
        """Queue a refresh of every tracked product."""
        busy = scheduler.is_busy
        future = scheduler.trigger()
        if not wait:
            message = "Refresh pass queued behind the running pass" if busy else "Refresh pass queued"
            return TriggerResponse(accepted=True, message=message)
        report = future.result()
        return TriggerResponse(
            accepted=True,
            message=f"Refreshed {len(report.refreshed)} products, {len(report.failed)} failed",
            report=RefreshReportResponse.model_validate(report),
        )

    @app.delete("/history", response_model=PruneResponse, tags=["History"])
    def prune_history(
        request: Request,
        older_than_days: Optional[int] = Query(None, ge=0),
        service: ProductService = Depends(get_service),
    ):
        """Delete price points older than the retention period."""
        days = older_than_days if older_than_days is not None else request.app.state.settings.HISTORY_RETENTION_DAYS
        deleted = service.gateway.prune_history(days)
        return PruneResponse(deleted=deleted, older_than_days=days)


def register_error_handlers(app: FastAPI):

    @app.exception_handler(NoListingsError)
    async def no_listings_handler(_request, exc):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": str(exc)},
        )

    @app.exception_handler(ProductNotFoundError)
    async def not_found_handler(_request, exc):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(ValueError)
    async def value_error_handler(_request, exc):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.exception_handler(sqlalchemy.exc.SQLAlchemyError)
    async def database_error_handler(_request, exc):
        logger.error("Database error: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": f"Database error: {str(exc)}"},
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(_request, exc):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(Exception)
    async def general_exception_handler(_request, exc):
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": f"Unexpected error: {str(exc)}"},
        )


app = create_app()


# Run with: uvicorn api.main:app --reload
if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.main:app", host="0.0.0.0", port=8000, reload=True)
