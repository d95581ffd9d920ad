"""Cashier PIN login"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from majubersama_pos.config import settings
from majubersama_pos.domain.exceptions import AuthenticationError, ValidationError
from majubersama_pos.infrastructure.database.models import ShopSetting
from majubersama_pos.infrastructure.observability.metrics import login_counter
from majubersama_pos.infrastructure.security import create_access_token, hash_pin, verify_pin

logger = logging.getLogger(__name__)

PIN_KEY = "pin_hash"
PIN_LENGTH = 4


def validate_pin_format(pin: str) -> None:
    """
    Raises:
        ValidationError: PIN is not exactly four digits
    """
    if len(pin) != PIN_LENGTH or not pin.isdigit():
        raise ValidationError(f"PIN must be {PIN_LENGTH} digits", error_code="INVALID_PIN_FORMAT")


class PinAuth:
    """
    Single shop-wide PIN, stored hashed in the shop_setting table.

    Until a PIN is set the configured default PIN is accepted.
    """

    def __init__(self, db: Session):
        self.db = db

    def _stored(self) -> Optional[ShopSetting]:
        return self.db.get(ShopSetting, PIN_KEY)

    def _matches(self, pin: str) -> bool:
        stored = self._stored()
        if stored is None:
            return pin == settings.default_pin
        return verify_pin(pin, stored.value)

    def login(self, pin: str) -> str:
        """
        Returns:
            Bearer token for the session

        Raises:
            AuthenticationError: wrong PIN
        """
        if not self._matches(pin):
            login_counter.labels(outcome="rejected").inc()
            raise AuthenticationError("PIN salah", error_code="WRONG_PIN")
        login_counter.labels(outcome="accepted").inc()
        return create_access_token()

    def change_pin(self, current_pin: str, new_pin: str) -> None:
        """
        Raises:
            AuthenticationError: current PIN is wrong
            ValidationError: new PIN is not four digits
        """
        if not self._matches(current_pin):
            raise AuthenticationError("PIN salah", error_code="WRONG_PIN")
        validate_pin_format(new_pin)

        stored = self._stored()
        if stored is None:
            self.db.add(ShopSetting(key=PIN_KEY, value=hash_pin(new_pin)))
        else:
            stored.value = hash_pin(new_pin)
        self.db.commit()
        logger.info("Cashier PIN changed")
