from pydantic import BaseModel, Field


class AddToCartRequest(BaseModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(ge=1)
