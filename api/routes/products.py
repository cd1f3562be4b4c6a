"""
api/routes/products.py -- Product CRUD for the authenticated user.

Routes:
  GET    /api/product       -- list the caller's products
  GET    /api/product/{id}  -- one product, data=null if not the caller's
  POST   /api/product       -- create a product owned by the caller
  PUT    /api/product/{id}  -- rename an owned product
  DELETE /api/product/{id}  -- delete an owned product and its updates

Every route requires auth (router-level get_current_identity). Ownership is
enforced in the store's WHERE clause: the caller's id is always part of the
lookup, so another user's product id behaves exactly like a missing one.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import ProductCreate, ProductEnvelope, ProductListEnvelope, ProductResponse
from auth.dependencies import get_current_identity
from auth.models import Identity
from auth.store import UserStore
from catalog.models import Product
from catalog.store import CatalogStore
from core.errors import NotFoundError

router = APIRouter(dependencies=[Depends(get_current_identity)])


@router.get("/product", response_model=ProductListEnvelope)
def list_products(request: Request, identity: Identity = Depends(get_current_identity)) -> ProductListEnvelope:
    """List the caller's products. 404 "nope" if the token outlived its user."""
    user_store: UserStore = request.app.state.user_store
    if user_store.get_by_id(identity.id) is None:
        raise NotFoundError()
    catalog: CatalogStore = request.app.state.catalog
    return ProductListEnvelope(data=[ProductResponse.from_domain(p) for p in catalog.list_products(identity.id)])


@router.get("/product/{product_id}", response_model=ProductEnvelope)
def get_product(
    request: Request, product_id: str, identity: Identity = Depends(get_current_identity)
) -> ProductEnvelope:
    catalog: CatalogStore = request.app.state.catalog
    product = catalog.get_owned_product(product_id, identity.id)
    return ProductEnvelope(data=ProductResponse.from_domain(product) if product else None)


@router.post("/product", response_model=ProductEnvelope)
def create_product(
    request: Request, body: ProductCreate, identity: Identity = Depends(get_current_identity)
) -> ProductEnvelope:
    catalog: CatalogStore = request.app.state.catalog
    product_id = catalog.create_product(Product(name=body.name, belongs_to_id=identity.id))
    return ProductEnvelope(data=ProductResponse.from_domain(catalog.get_product(product_id)))


@router.put("/product/{product_id}", response_model=ProductEnvelope)
def rename_product(
    request: Request,
    product_id: str,
    body: ProductCreate,
    identity: Identity = Depends(get_current_identity),
) -> ProductEnvelope:
    catalog: CatalogStore = request.app.state.catalog
    updated = catalog.rename_product(product_id, identity.id, body.name)
    if updated is None:
        raise NotFoundError()
    return ProductEnvelope(data=ProductResponse.from_domain(updated))


@router.delete("/product/{product_id}", response_model=ProductEnvelope)
def delete_product(
    request: Request, product_id: str, identity: Identity = Depends(get_current_identity)
) -> ProductEnvelope:
    """Delete an owned product. Its updates go with it (ON DELETE CASCADE)."""
    catalog: CatalogStore = request.app.state.catalog
    deleted = catalog.delete_product(product_id, identity.id)
    if deleted is None:
        raise NotFoundError()
    return ProductEnvelope(data=ProductResponse.from_domain(deleted))
