"""/v1/auth - cashier PIN login"""

from fastapi import APIRouter, Depends, Response

from majubersama_pos.api.dependencies import get_pin_auth, require_session
from majubersama_pos.api.v1.schemas import ChangePinRequest, LoginRequest, TokenResponse
from majubersama_pos.services.auth import PinAuth

router = APIRouter()


@router.post("/auth/login", response_model=TokenResponse)
def login(body: LoginRequest, auth: PinAuth = Depends(get_pin_auth)):
    return TokenResponse(access_token=auth.login(body.pin))


@router.post("/auth/change-pin", status_code=204, dependencies=[Depends(require_session)])
def change_pin(body: ChangePinRequest, auth: PinAuth = Depends(get_pin_auth)):
    auth.change_pin(body.current_pin, body.new_pin)
    return Response(status_code=204)
