"""Unit tests for cashier PIN login"""

from datetime import timedelta

import pytest
from sqlalchemy.orm import Session
from majubersama_pos.config import settings
from majubersama_pos.domain.exceptions import AuthenticationError, ValidationError
from majubersama_pos.infrastructure.database.models import ShopSetting
from majubersama_pos.infrastructure.security import create_access_token, decode_token
from majubersama_pos.services.auth import PIN_KEY, PinAuth


def test_default_pin_logs_in(db: Session):
    token = PinAuth(db).login(settings.default_pin)

    assert decode_token(token)["sub"] == "kasir"


def test_wrong_pin_rejected(db: Session):
    with pytest.raises(AuthenticationError) as exc_info:
        PinAuth(db).login("0000")

    assert exc_info.value.error_code == "WRONG_PIN"
    assert exc_info.value.status_code == 401


def test_change_pin_stores_hash_and_retires_default(db: Session):
    auth = PinAuth(db)
    auth.change_pin(settings.default_pin, "4821")

    stored = db.get(ShopSetting, PIN_KEY)
    assert stored.value != "4821"
    assert decode_token(auth.login("4821")) is not None
    with pytest.raises(AuthenticationError):
        auth.login(settings.default_pin)


def test_change_pin_requires_current_pin(db: Session):
    with pytest.raises(AuthenticationError):
        PinAuth(db).change_pin("9999", "4821")

    assert db.get(ShopSetting, PIN_KEY) is None


@pytest.mark.parametrize("new_pin", ["123", "12345", "12a4", ""])
def test_new_pin_must_be_four_digits(db: Session, new_pin: str):
    with pytest.raises(ValidationError) as exc_info:
        PinAuth(db).change_pin(settings.default_pin, new_pin)

    assert exc_info.value.error_code == "INVALID_PIN_FORMAT"


def test_expired_or_forged_tokens_rejected():
    assert decode_token(create_access_token(expires_delta=timedelta(seconds=-1))) is None
    assert decode_token("not-a-token") is None
    assert decode_token(create_access_token() + "x") is None
