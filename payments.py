import requests

from errors import InternalError

RAZORPAY_ORDERS_URL = "https://api.razorpay.com/v1/orders"


class PaymentGateway:
    """Thin client for the Razorpay Orders API."""

    def __init__(self, key_id=None, key_secret=None, currency="INR", timeout=10):
        self.key_id = key_id
        self.key_secret = key_secret
        self.currency = currency
        self.timeout = timeout

    @classmethod
    def from_config(cls, config):
        return cls(
            key_id=config.get("RAZORPAY_KEY_ID"),
            key_secret=config.get("RAZORPAY_KEY_SECRET"),
            currency=config.get("RAZORPAY_CURRENCY", "INR"),
        )

    @property
    def configured(self):
        return bool(self.key_id and self.key_secret)

    def create_order(self, amount, receipt):
        """Reserve ``amount`` (minor currency units) and return the provider's order."""
        payload = {"amount": amount, "currency": self.currency, "receipt": receipt}
        resp = requests.post(
            RAZORPAY_ORDERS_URL,
            auth=(self.key_id, self.key_secret),
            json=payload,
            timeout=self.timeout,
        )
        if resp.status_code >= 300:
            raise InternalError(f"Payment provider error: {resp.text}")
        return resp.json()
