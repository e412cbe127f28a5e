from typing import Any, Dict
from pydantic import BaseModel


class PlaceOrderRequest(BaseModel):
    shipping_address: Dict[str, Any]


class UpdateOrderStatusRequest(BaseModel):
    # Membership in the allowed set is checked by the order service
    status: str
