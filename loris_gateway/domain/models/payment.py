from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class PaymentRequest(BaseModel):
    """Body of an STK push initiation request.

    Every field is optional at parse time; presence is checked by the payment
    service so that missing fields produce a single, friendly message.
    """
    model_config = ConfigDict(populate_by_name=True)

    phone_number: Optional[Union[str, int]] = Field(default=None, alias="phoneNumber")
    amount: Optional[Any] = None
    order_id: Optional[Union[str, int]] = Field(default=None, alias="orderId")


class StatusRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    checkout_request_id: Optional[str] = Field(default=None, alias="checkoutRequestID")


class PaymentInitiationResult(BaseModel):
    """Remote-assigned tracking id plus the raw gateway payload."""
    model_config = ConfigDict(populate_by_name=True)

    tracking_id: str = Field(alias="trackingId")
    raw_status: Dict[str, Any] = Field(alias="rawStatus")


class CallbackNotification(BaseModel):
    """Fields of interest in an STK push result callback."""
    merchant_request_id: Optional[str] = None
    checkout_request_id: Optional[str] = None
    result_code: Optional[int] = None
    result_desc: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.result_code == 0
