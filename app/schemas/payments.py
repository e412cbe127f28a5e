from typing import Any, Dict, Literal, Optional
from pydantic import BaseModel, Field


class ChargeRequest(BaseModel):
    order_id: str = Field(min_length=1)
    payment_method: Literal["card", "upi", "wallet"]
    payment_details: Optional[Dict[str, Any]] = None
