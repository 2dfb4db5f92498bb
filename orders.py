import math

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from catalog import finite_number, whole_number
from errors import FeatureDisabled, InvalidInput
from models import ORDER_STATUSES, Order, OrderItem

PENDING, COMPLETED = ORDER_STATUSES


def _parse_items(items):
    if not isinstance(items, list) or not items:
        raise InvalidInput("Order must contain at least one item")

    parsed = []
    for item in items:
        if not isinstance(item, dict) or not item.get("bookId"):
            raise InvalidInput("Each item needs a bookId")
        quantity = whole_number(item.get("quantity"), "quantity")
        price = finite_number(item.get("price"), "price")
        if quantity < 1:
            raise InvalidInput("Item quantity must be at least 1")
        parsed.append((str(item["bookId"]), quantity, price))
    return parsed


class OrderService:
    """Checkout against the payment provider and local order bookkeeping.

    An order is ``pending`` until the client reports a payment, then
    ``completed``. There is no other transition.
    """

    def __init__(self, session, gateway):
        self.session = session
        self.gateway = gateway

    def create_order(self, user_id, items, total_amount):
        if not self.gateway.configured:
            raise FeatureDisabled("Payment gateway is not configured")

        parsed = _parse_items(items)
        total = finite_number(total_amount, "totalAmount")
        expected = sum(qty * price for _, qty, price in parsed)
        if not math.isfinite(expected) or round(expected * 100) != round(total * 100):
            raise InvalidInput("totalAmount does not match the order items")

        amount = int(round(total * 100))
        remote = self.gateway.create_order(amount, receipt=f"rcpt_{user_id}")

        order = Order(
            user_id=user_id,
            total_amount=total,
            razorpay_order_id=remote["id"],
            status=PENDING,
        )
        try:
            self.session.add(order)
            self.session.flush()
            for book_id, quantity, price in parsed:
                self.session.add(OrderItem(
                    order_id=order.id, book_id=book_id, quantity=quantity, price=price
                ))
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise

        current_app.logger.info(
            "User %s created order %s (%s)", user_id, order.id, order.razorpay_order_id
        )
        return {
            "orderId": order.id,
            "razorpayOrderId": order.razorpay_order_id,
            "amount": amount,
            "currency": remote.get("currency", self.gateway.currency),
            "keyId": self.gateway.key_id,
        }

    def complete_order(self, order_id, payment_id):
        # The payment id is taken on trust; nothing is checked with the provider.
        if not payment_id:
            raise InvalidInput("paymentId is required")
        self.session.query(Order).filter_by(id=order_id).update(
            {Order.status: COMPLETED, Order.razorpay_payment_id: payment_id},
            synchronize_session=False,
        )
        self.session.commit()
        current_app.logger.info("Order %s completed with payment %s", order_id, payment_id)

    def list_for_user(self, user_id):
        return (
            self.session.query(Order)
            .filter_by(user_id=user_id)
            .order_by(Order.created_at.desc())
            .all()
        )
