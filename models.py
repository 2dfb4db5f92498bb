# models.py
import uuid
from datetime import datetime

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

BOOK_TYPES = ("internal", "external")
ORDER_STATUSES = ("pending", "completed")


def _iso(value):
    return value.isoformat() if value else None


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    mobile = db.Column(db.String(20), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False)
    state = db.Column(db.String(100))
    city = db.Column(db.String(100))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "mobile": self.mobile,
            "state": self.state,
            "city": self.city,
        }


class Admin(db.Model):
    __tablename__ = 'admins'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False)

    def to_dict(self):
        return {"id": self.id, "username": self.username}


class Book(db.Model):
    __tablename__ = 'books'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = db.Column(db.String(500), nullable=False)
    author = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text)
    price = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=False)
    stock = db.Column(db.Integer, default=0, nullable=False)
    image_url = db.Column(db.String(500))
    featured = db.Column(db.Boolean, default=False, nullable=False)
    publisher_url = db.Column(db.String(500))
    book_type = db.Column(db.String(20), default="internal", nullable=False)
    category = db.Column(db.String(100), index=True)
    view_count = db.Column(db.Integer, default=0, nullable=False)
    created_by = db.Column(db.Integer, db.ForeignKey('admins.id'))
    updated_by = db.Column(db.Integer, db.ForeignKey('admins.id'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    # request key -> column attribute
    FIELDS = {
        "title": "title",
        "author": "author",
        "description": "description",
        "price": "price",
        "stock": "stock",
        "imageUrl": "image_url",
        "featured": "featured",
        "publisherUrl": "publisher_url",
        "bookType": "book_type",
        "category": "category",
    }

    def to_dict(self):
        data = {key: getattr(self, attr) for key, attr in self.FIELDS.items()}
        data.update(
            id=self.id,
            view_count=self.view_count,
            created_by=self.created_by,
            updated_by=self.updated_by,
            created_at=_iso(self.created_at),
        )
        return data

    def __repr__(self):
        return f"<Book {self.title}>"


class BookAuditLog(db.Model):
    __tablename__ = 'book_audit_log'

    id = db.Column(db.Integer, primary_key=True)
    book_id = db.Column(db.String(36), nullable=False, index=True)
    action_type = db.Column(db.String(10), nullable=False)
    admin_id = db.Column(db.Integer, db.ForeignKey('admins.id'))
    old_values = db.Column(db.JSON)
    new_values = db.Column(db.JSON)
    timestamp = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "book_id": self.book_id,
            "action_type": self.action_type,
            "admin_id": self.admin_id,
            "old_values": self.old_values,
            "new_values": self.new_values,
            "timestamp": _iso(self.timestamp),
        }


class Order(db.Model):
    __tablename__ = 'orders'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    total_amount = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=False)
    razorpay_order_id = db.Column(db.String(100), index=True)
    razorpay_payment_id = db.Column(db.String(100))
    status = db.Column(db.Enum(*ORDER_STATUSES, name="order_status"), default=ORDER_STATUSES[0], nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    items = db.relationship('OrderItem', backref='order', lazy=True)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "total_amount": self.total_amount,
            "razorpay_order_id": self.razorpay_order_id,
            "razorpay_payment_id": self.razorpay_payment_id,
            "status": self.status,
            "created_at": _iso(self.created_at),
            "items": [item.to_dict() for item in self.items],
        }


class OrderItem(db.Model):
    __tablename__ = 'order_items'

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey('orders.id'), nullable=False)
    book_id = db.Column(db.String(36), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    # copied at purchase time, not a reference to Book.price
    price = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=False)

    def to_dict(self):
        return {"book_id": self.book_id, "quantity": self.quantity, "price": self.price}
