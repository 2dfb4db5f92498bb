"""Bearer-token identity and the route decorators that enforce it.

A caller is always one of three identities: ``AnonymousCaller`` when no
Authorization header was sent, ``AuthenticatedUser`` for a customer token,
or ``AuthenticatedAdmin`` for an admin token. Decorators check which one
they got instead of comparing role strings.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import wraps

from flask import current_app, g, request
from jose import jwt, JWTError
from sqlalchemy import or_
from werkzeug.security import generate_password_hash, check_password_hash

import captcha
from errors import Forbidden, InvalidCredential, InvalidInput, Unauthenticated
from models import Admin, User

ALGORITHM = "HS256"

REGISTER_FIELDS = ("name", "email", "password", "mobile", "state", "city")


@dataclass(frozen=True)
class AnonymousCaller:
    pass


@dataclass(frozen=True)
class AuthenticatedUser:
    id: int
    email: str


@dataclass(frozen=True)
class AuthenticatedAdmin:
    id: int
    username: str


# ------------------- Tokens -------------------
def issue_token(identity):
    if isinstance(identity, AuthenticatedAdmin):
        claims = {"username": identity.username, "role": "admin"}
    elif isinstance(identity, AuthenticatedUser):
        claims = {"email": identity.email, "role": "user"}
    else:
        raise TypeError(f"cannot issue a token for {identity!r}")

    hours = current_app.config["JWT_EXPIRES_HOURS"]
    claims["sub"] = str(identity.id)
    claims["exp"] = datetime.now(timezone.utc) + timedelta(hours=hours)
    return jwt.encode(claims, current_app.config["JWT_SECRET"], algorithm=ALGORITHM)


def identify(header):
    """Turn an Authorization header value into an identity."""
    if not header:
        return AnonymousCaller()

    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise InvalidCredential("Invalid token")

    try:
        claims = jwt.decode(token.strip(), current_app.config["JWT_SECRET"], algorithms=[ALGORITHM])
        subject = int(claims["sub"])
    except (JWTError, KeyError, ValueError):
        raise InvalidCredential("Invalid or expired token")

    if claims.get("role") == "admin":
        return AuthenticatedAdmin(id=subject, username=claims.get("username", ""))
    return AuthenticatedUser(id=subject, email=claims.get("email", ""))


def _resolve(required):
    identity = identify(request.headers.get("Authorization"))
    if isinstance(identity, AnonymousCaller):
        raise Unauthenticated("Access denied. No token provided.")
    if not isinstance(identity, required):
        raise Forbidden("Access denied. Insufficient permissions.")
    g.identity = identity
    return identity


# ------------------- Decorators -------------------
def login_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        _resolve(AuthenticatedUser)
        return f(*args, **kwargs)
    return decorated_function


def admin_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        _resolve(AuthenticatedAdmin)
        return f(*args, **kwargs)
    return decorated_function


# ------------------- Accounts -------------------
def register_user(session, data):
    missing = [name for name in REGISTER_FIELDS if not str(data.get(name) or "").strip()]
    if missing:
        raise InvalidInput(f"Missing required fields: {', '.join(missing)}")

    if not captcha.verify(data.get("captchaToken")):
        raise InvalidInput("Captcha verification failed")

    email = str(data["email"]).strip().lower()
    mobile = str(data["mobile"]).strip()
    existing = session.query(User).filter(or_(User.email == email, User.mobile == mobile)).first()
    if existing:
        raise InvalidInput("User already exists with this email or mobile number")

    user = User(
        name=str(data["name"]).strip(),
        email=email,
        mobile=mobile,
        password=generate_password_hash(str(data["password"])),
        state=str(data["state"]).strip(),
        city=str(data["city"]).strip(),
    )
    session.add(user)
    session.commit()
    current_app.logger.info("Registered user %s", user.id)
    return user


def authenticate_user(session, email, password):
    user = session.query(User).filter_by(email=(email or "").strip().lower()).first()
    if not user or not check_password_hash(user.password, password or ""):
        current_app.logger.warning("Rejected user login for %r", email)
        raise InvalidCredential("Invalid credentials")
    return user, issue_token(AuthenticatedUser(id=user.id, email=user.email))


def authenticate_admin(session, username, password):
    admin = session.query(Admin).filter_by(username=(username or "").strip()).first()
    if not admin or not check_password_hash(admin.password, password or ""):
        current_app.logger.warning("Rejected admin login for %r", username)
        raise InvalidCredential("Invalid credentials")
    return admin, issue_token(AuthenticatedAdmin(id=admin.id, username=admin.username))


def ensure_admin(session, username, password):
    """Seed the configured admin account if it does not exist yet."""
    if not username or not password:
        return None
    admin = session.query(Admin).filter_by(username=username).first()
    if not admin:
        admin = Admin(username=username, password=generate_password_hash(password))
        session.add(admin)
        session.commit()
        current_app.logger.info("Created admin account %s", username)
    return admin
