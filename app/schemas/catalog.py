from typing import List, Optional
from pydantic import BaseModel, Field, RootModel, field_validator


class ProductCreateRequest(BaseModel):
    sku: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1)
    description: Optional[str] = ""
    price_cents: int = Field(ge=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    stock: int = Field(ge=0)
    images: List[str] = Field(default_factory=list)

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, v: str) -> str:
        return v.upper()


class ProductUpdateRequest(BaseModel):
    """Partial update; SKU is immutable and not accepted here."""
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    price_cents: Optional[int] = Field(default=None, ge=0)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    stock: Optional[int] = Field(default=None, ge=0)
    images: Optional[List[str]] = None

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, v):
        return v.upper() if v else v


class ProductBulkRequest(RootModel[List[ProductCreateRequest]]):
    pass
