"""
api/routes/updates.py -- Update CRUD, gated by the product ownership chain.

Routes:
  GET    /api/update       -- every update under the caller's products
  GET    /api/update/{id}  -- one owned update
  POST   /api/update       -- post an update against a product
  PUT    /api/update/{id}  -- edit an owned update
  DELETE /api/update/{id}  -- delete an owned update

Per-request flow for reads and mutations of a single update:
  AuthPending -> Authenticated (router dependency)
  -> OwnershipChecked (OwnershipResolver.find_owned_update)
  -> Mutated (store call, data returned) | Rejected (200 {"message": "nope"})

Rejected never touches the store beyond the ownership scan.

POST /update checks that the product exists. Whether it must also belong to
the caller is the UPDATE_CREATE_REQUIRES_OWNERSHIP setting, off by default.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from api.models import UpdateCreate, UpdateEnvelope, UpdateListEnvelope, UpdatePatch, UpdateResponse
from auth.dependencies import get_current_identity
from auth.models import Identity
from catalog.models import Update
from catalog.ownership import OwnershipResolver
from catalog.store import CatalogStore
from core.config import Settings
from core.errors import OwnershipNotFound

logger = logging.getLogger("shiplog.api")

router = APIRouter(dependencies=[Depends(get_current_identity)])


@router.get("/update", response_model=UpdateListEnvelope)
def list_updates(request: Request, identity: Identity = Depends(get_current_identity)) -> UpdateListEnvelope:
    ownership: OwnershipResolver = request.app.state.ownership
    updates = ownership.list_updates_for_user(identity.id)
    return UpdateListEnvelope(data=[UpdateResponse.from_domain(u) for u in updates])


@router.get("/update/{update_id}", response_model=UpdateEnvelope)
def get_update(request: Request, update_id: str, identity: Identity = Depends(get_current_identity)) -> UpdateEnvelope:
    ownership: OwnershipResolver = request.app.state.ownership
    match = ownership.find_owned_update(identity.id, update_id)
    return UpdateEnvelope(data=UpdateResponse.from_domain(match))


@router.post("/update", response_model=UpdateEnvelope)
def create_update(
    request: Request, body: UpdateCreate, identity: Identity = Depends(get_current_identity)
) -> UpdateEnvelope:
    """Post an update against body.product_id.

    With UPDATE_CREATE_REQUIRES_OWNERSHIP off, any authenticated user can
    post under any existing product. This differs from PUT and DELETE,
    which always require ownership.
    """
    catalog: CatalogStore = request.app.state.catalog
    settings: Settings = request.app.state.settings

    product = catalog.get_product(body.product_id)
    if product is None:
        raise OwnershipNotFound()
    if settings.update_create_requires_ownership and product.belongs_to_id != identity.id:
        raise OwnershipNotFound()

    update_id = catalog.create_update(
        Update(
            product_id=product.id,
            title=body.title,
            body=body.body,
            status=body.status.value,
            version=body.version,
        )
    )
    if product.belongs_to_id != identity.id:
        logger.warning(
            "User %s posted update %s under product %s owned by another user",
            identity.id,
            update_id,
            product.id,
        )
    return UpdateEnvelope(data=UpdateResponse.from_domain(catalog.get_update(update_id)))


@router.put("/update/{update_id}", response_model=UpdateEnvelope)
def edit_update(
    request: Request,
    update_id: str,
    body: UpdatePatch,
    identity: Identity = Depends(get_current_identity),
) -> UpdateEnvelope:
    ownership: OwnershipResolver = request.app.state.ownership
    catalog: CatalogStore = request.app.state.catalog

    ownership.find_owned_update(identity.id, update_id)

    fields = body.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    updated = catalog.edit_update(update_id, **fields)
    if updated is None:
        # deleted between the ownership check and the write
        raise OwnershipNotFound()
    return UpdateEnvelope(data=UpdateResponse.from_domain(updated))


@router.delete("/update/{update_id}", response_model=UpdateEnvelope)
def delete_update(
    request: Request, update_id: str, identity: Identity = Depends(get_current_identity)
) -> UpdateEnvelope:
    ownership: OwnershipResolver = request.app.state.ownership
    catalog: CatalogStore = request.app.state.catalog

    ownership.find_owned_update(identity.id, update_id)

    deleted = catalog.delete_update(update_id)
    if deleted is None:
        raise OwnershipNotFound()
    return UpdateEnvelope(data=UpdateResponse.from_domain(deleted))
