import requests
from flask import current_app


def verify(token):
    """Check a reCAPTCHA response token. Any failure counts as not verified."""
    secret = current_app.config.get("RECAPTCHA_SECRET_KEY")
    if not token or not secret:
        current_app.logger.warning("Captcha rejected: missing token or secret")
        return False

    try:
        resp = requests.post(
            current_app.config["RECAPTCHA_VERIFY_URL"],
            data={"secret": secret, "response": token},
            timeout=10,
        )
        resp.raise_for_status()
        result = resp.json()
    except (requests.RequestException, ValueError) as e:
        current_app.logger.warning("Captcha verification unavailable: %s", e)
        return False

    return bool(result.get("success"))
