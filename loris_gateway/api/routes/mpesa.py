from typing import Optional

from fastapi import APIRouter, Body, Depends, Request, status

from loris_gateway.api.dependencies import get_payment_service
from loris_gateway.core.logging import get_logger
from loris_gateway.domain.models.payment import PaymentRequest, StatusRequest
from loris_gateway.services.payment_service import PaymentService

mpesa_router = APIRouter()
logger = get_logger(__name__)

CALLBACK_ACK = {
    "ResultCode": 0,
    "ResultDesc": "Callback received successfully"
}


@mpesa_router.post("/initiate", summary="Initiate an STK push")
async def initiate_payment(
    payload: Optional[PaymentRequest] = Body(None),
    payment_service: PaymentService = Depends(get_payment_service)
):
    result = await payment_service.initiate_payment(payload)
    return {
        "success": True,
        "message": "STK push initiated successfully",
        "data": result.model_dump(by_alias=True)
    }


@mpesa_router.post("/status", summary="Query an STK push")
async def check_status(
    payload: Optional[StatusRequest] = Body(None),
    payment_service: PaymentService = Depends(get_payment_service)
):
    result = await payment_service.check_status(payload)
    return {
        "success": True,
        "message": "Transaction status retrieved",
        "data": result
    }


@mpesa_router.post(
    "/callback",
    status_code=status.HTTP_200_OK,
    summary="Receive M-PESA result notifications"
)
async def receive_callback(
    request: Request,
    payment_service: PaymentService = Depends(get_payment_service)
):
    """
    Acknowledge a payment notification.

    The body is read raw so that malformed payloads still get the fixed
    acknowledgment; Safaricom keeps re-delivering until it receives one.
    """
    try:
        raw_body = await request.body()
    except Exception as e:
        logger.error(f"Error reading M-PESA callback body: {str(e)}")
        raw_body = b""

    payment_service.handle_callback(raw_body)
    return dict(CALLBACK_ACK)
