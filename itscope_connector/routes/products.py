"""Tracked product management and ItScope search."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from itscope_connector.container import ServiceContainer
from itscope_connector.core.exceptions import (
    ItScopeServiceError,
    ProductAlreadyTrackedError,
    ProductImportError,
    ProductNotFoundError,
    StorefrontSessionError,
)
from itscope_connector.dependencies import get_container
from itscope_connector.schemas.itscope import SupplierProduct
from itscope_connector.schemas.product import (
    ProductDeleteRequest,
    ProductImportRequest,
    ProductUpdateRequest,
    TrackedProductRead,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["products"])


@router.get("/products", response_model=List[TrackedProductRead])
async def list_products(
    shop: Optional[str] = Query(None),
    container: ServiceContainer = Depends(get_container),
):
    if not shop:
        raise HTTPException(status_code=400, detail="Missing shop")
    return await container.products.list_active(shop)


@router.post("/products")
async def import_product(
    request: ProductImportRequest,
    container: ServiceContainer = Depends(get_container),
):
    """Create a draft Shopify product from an ItScope SKU and start tracking it."""
    try:
        tracked = await container.product_import.import_product(request)
    except ProductAlreadyTrackedError as e:
        return JSONResponse(
            status_code=409,
            content={
                "detail": str(e),
                "product": TrackedProductRead.from_orm_model(e.product).model_dump(mode="json"),
            },
        )
    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StorefrontSessionError:
        raise HTTPException(status_code=401, detail="No Shopify session found. Please reinstall the app.")
    except ProductImportError as e:
        return JSONResponse(status_code=422, content={"detail": str(e), "details": e.details})
    except ItScopeServiceError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except Exception as e:
        logger.error(f"Product creation error for {request.sku}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e) or "Failed to create product in Shopify")

    return {"success": True, "product": TrackedProductRead.from_orm_model(tracked)}


@router.patch("/products")
async def update_product(
    request: ProductUpdateRequest,
    container: ServiceContainer = Depends(get_container),
):
    """Set or clear the project id and/or dismiss the price alert."""
    values = {}
    if "project_id" in request.model_fields_set:
        values["project_id"] = request.project_id or None
    if request.dismiss_price_alert:
        values["price_alert"] = False

    try:
        product = await container.products.update_fields(request.shop, request.id, values)
    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "product": TrackedProductRead.from_orm_model(product)}


@router.delete("/products")
async def delete_product(
    request: ProductDeleteRequest,
    container: ServiceContainer = Depends(get_container),
):
    try:
        await container.products.soft_delete(request.shop, request.id)
    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True}


@router.get("/itscope-search", response_model=SupplierProduct)
async def itscope_search(
    sku: Optional[str] = Query(None),
    shop: Optional[str] = Query(None),
    container: ServiceContainer = Depends(get_container),
):
    """Look a SKU up in ItScope, keeping only offers from allowed distributors."""
    if not sku or not shop:
        raise HTTPException(status_code=400, detail="Missing sku or shop parameter")

    try:
        product = await container.itscope.search_by_sku(sku)
    except ItScopeServiceError as e:
        logger.error(f"ItScope search error for {sku}: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    if product is None:
        raise HTTPException(status_code=404, detail="Product not found in ItScope")
    return container.distributors.filter_product(product)
