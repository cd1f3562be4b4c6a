"""
API request and response models for shiplog REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
catalog/models.py, which own the internal domain representation. Route
handlers map between the two.

Successful reads and writes are wrapped in a {"data": ...} envelope;
sign-up and sign-in answer {"token": ...}; every error answers
{"message": ..., "type": ...}.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from catalog.models import Product, Update, UpdateStatus

# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class Credentials(BaseModel):
    """Request body for POST /signup and POST /signin.

    Neither field is whitespace-stripped: a password is compared byte for
    byte. password is capped at 72 characters because bcrypt stops at 72
    bytes; PasswordHasher re-checks the byte length for multi-byte input.
    """

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=72)


class TokenResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


class ProductCreate(BaseModel):
    """Request body for POST /product and PUT /product/{id}."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)


class ProductResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    belongs_to_id: str
    created_at: str

    @classmethod
    def from_domain(cls, product: Product) -> "ProductResponse":
        return cls(
            id=product.id,
            name=product.name,
            belongs_to_id=product.belongs_to_id,
            created_at=product.created_at,
        )


class ProductEnvelope(BaseModel):
    """GET /product/{id} answers data=null when the caller owns no such product."""

    data: Optional[ProductResponse]


class ProductListEnvelope(BaseModel):
    data: list[ProductResponse]


# ---------------------------------------------------------------------------
# Updates
# ---------------------------------------------------------------------------


class UpdateCreate(BaseModel):
    """Request body for POST /update."""

    model_config = ConfigDict(str_strip_whitespace=True)

    product_id: str = Field(min_length=1, max_length=36)
    title: str = Field(min_length=1, max_length=255)
    body: str = Field(min_length=1, max_length=10_000)
    status: UpdateStatus = UpdateStatus.IN_PROGRESS
    version: Optional[str] = Field(default=None, max_length=50)


class UpdatePatch(BaseModel):
    """Request body for PUT /update/{id}. Only fields that are sent change."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    body: Optional[str] = Field(default=None, min_length=1, max_length=10_000)
    status: Optional[UpdateStatus] = None
    version: Optional[str] = Field(default=None, max_length=50)


class UpdateResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    product_id: str
    title: str
    body: str
    status: UpdateStatus
    version: Optional[str]
    created_at: str
    updated_at: str

    @classmethod
    def from_domain(cls, update: Update) -> "UpdateResponse":
        return cls(
            id=update.id,
            product_id=update.product_id,
            title=update.title,
            body=update.body,
            status=update.status,
            version=update.version,
            created_at=update.created_at,
            updated_at=update.updated_at,
        )


class UpdateEnvelope(BaseModel):
    data: UpdateResponse


class UpdateListEnvelope(BaseModel):
    data: list[UpdateResponse]


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class MessageResponse(BaseModel):
    """Body of every error response, and of the soft "nope" answer.

    type is the ErrorKind value; it is left out of the soft "nope".
    errors carries field-level detail for request validation failures only.
    """

    model_config = ConfigDict(frozen=True)

    message: str
    type: Optional[str] = None
    errors: Optional[list[dict]] = None


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
