import os

from flask import Blueprint, Flask, current_app, g, jsonify, request, send_from_directory, url_for

import auth
from auth import admin_required, login_required
from catalog import BookCatalog
from config import Config
from errors import register_error_handlers
from models import db
from orders import OrderService
from payments import PaymentGateway
from uploads import save_image

api = Blueprint("api", __name__)


def _body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _books(books):
    return jsonify([b.to_dict() for b in books])


# =================== PUBLIC ROUTES ===================
@api.route("/")
def index():
    return "Server is running!"


@api.route("/books")
@api.route("/api/books")
def list_books():
    return _books(BookCatalog(db.session).list_all())


@api.route("/books/search")
def legacy_search():
    query = (request.args.get("query") or "").strip()
    if not query:
        return jsonify({"error": "Search query is required"}), 400

    books = BookCatalog(db.session).search(query, include_description=False)
    if not books:
        return jsonify({"message": "No books found for the given query."}), 404
    return _books(books)


@api.route("/api/books/search")
def search_books():
    # A blank query matches every book here, unlike the admin and legacy searches.
    return _books(BookCatalog(db.session).search(request.args.get("query")))


@api.route("/api/books/featured")
def featured_books():
    return _books(BookCatalog(db.session).list_featured())


@api.route("/api/books/category/<category>")
def books_by_category(category):
    return _books(BookCatalog(db.session).list_by_category(category))


@api.route("/api/books/<book_id>")
def book_detail(book_id):
    return jsonify(BookCatalog(db.session).get_by_id(book_id).to_dict())


@api.route("/api/books/<book_id>/view", methods=["POST"])
def record_view(book_id):
    BookCatalog(db.session).increment_view_count(book_id)
    return jsonify({"message": "View recorded"})


# =================== AUTH ROUTES ===================
@api.route("/api/auth/register", methods=["POST"])
def register():
    user = auth.register_user(db.session, _body())
    return jsonify({"message": "User registered successfully", "userId": user.id}), 201


@api.route("/api/auth/login", methods=["POST"])
def login():
    data = _body()
    user, token = auth.authenticate_user(db.session, data.get("email"), data.get("password"))
    return jsonify({"token": token, "user": user.to_dict()})


@api.route("/api/admin/login", methods=["POST"])
def admin_login():
    data = _body()
    admin, token = auth.authenticate_admin(db.session, data.get("username"), data.get("password"))
    return jsonify({"token": token, "admin": admin.to_dict()})


# =================== ADMIN ROUTES ===================
@api.route("/api/admin/books")
@admin_required
def admin_books():
    books, pagination = BookCatalog(db.session).list_admin(
        request.args.get("page"), request.args.get("limit")
    )
    return jsonify({"books": [b.to_dict() for b in books], "pagination": pagination})


@api.route("/api/admin/books/search")
@admin_required
def admin_search():
    return _books(BookCatalog(db.session).search(
        request.args.get("query"), include_description=False, require_query=True
    ))


@api.route("/api/admin/books/<book_id>")
@admin_required
def admin_book_detail(book_id):
    return jsonify(BookCatalog(db.session).get_by_id(book_id).to_dict())


@api.route("/api/admin/books", methods=["POST"])
@admin_required
def create_book():
    book = BookCatalog(db.session).create(_body(), g.identity.id)
    return jsonify(book.to_dict()), 201


@api.route("/api/admin/books/<book_id>", methods=["PUT"])
@admin_required
def update_book(book_id):
    book = BookCatalog(db.session).update(book_id, _body(), g.identity.id)
    return jsonify(book.to_dict())


@api.route("/api/admin/books/<book_id>", methods=["DELETE"])
@admin_required
def delete_book(book_id):
    BookCatalog(db.session).remove(book_id)
    return jsonify({"message": "Book deleted successfully"})


@api.route("/api/admin/books/<book_id>/audit")
@admin_required
def book_audit(book_id):
    entries = BookCatalog(db.session).audit_trail(book_id)
    return jsonify([e.to_dict() for e in entries])


@api.route("/api/admin/books/upload-image", methods=["POST"])
@admin_required
def upload_image():
    filename = save_image(
        request.files.get("image"),
        current_app.config["UPLOAD_FOLDER"],
        current_app.config["MAX_IMAGE_BYTES"],
    )
    return jsonify({
        "imageUrl": url_for("api.uploaded_image", filename=filename),
        "filename": filename,
    })


@api.route("/uploads/<path:filename>")
def uploaded_image(filename):
    return send_from_directory(current_app.config["UPLOAD_FOLDER"], filename)


# =================== ORDER ROUTES ===================
def _order_service():
    return OrderService(db.session, PaymentGateway.from_config(current_app.config))


@api.route("/api/orders", methods=["POST"])
@login_required
def create_order():
    data = _body()
    result = _order_service().create_order(g.identity.id, data.get("items"), data.get("totalAmount"))
    return jsonify(result)


@api.route("/api/orders")
@login_required
def list_orders():
    orders = _order_service().list_for_user(g.identity.id)
    return jsonify([o.to_dict() for o in orders])


@api.route("/api/orders/<int:order_id>/complete", methods=["POST"])
@login_required
def complete_order(order_id):
    _order_service().complete_order(order_id, _body().get("paymentId"))
    return jsonify({"message": "Order completed"})


# ------------------- App Factory -------------------
def create_app(overrides=None):
    app = Flask(__name__, static_folder="static")
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    app.logger.setLevel(app.config["LOG_LEVEL"])

    if not app.config["UPLOAD_FOLDER"]:
        app.config["UPLOAD_FOLDER"] = os.path.join(app.static_folder, "uploads")

    if not app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite"):
        app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", {
            "pool_size": app.config["DB_POOL_SIZE"],
            "max_overflow": app.config["DB_MAX_OVERFLOW"],
            "pool_pre_ping": True,
        })

    db.init_app(app)
    register_error_handlers(app)
    app.register_blueprint(api)

    # ------------------- Create Tables + Admin -------------------
    with app.app_context():
        db.create_all()
        auth.ensure_admin(db.session, app.config["ADMIN_USERNAME"], app.config["ADMIN_PASSWORD"])

    return app


# =================== RUN ===================
if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=app.config["PORT"])
