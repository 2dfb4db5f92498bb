import os
import random
import time

from flask import current_app
from werkzeug.utils import secure_filename

from errors import InvalidInput


def unique_name(original):
    ext = os.path.splitext(secure_filename(original or ""))[1].lower()
    return f"{int(time.time() * 1000)}-{random.randint(0, 999_999_999)}{ext}"


def save_image(file, folder, max_bytes):
    """Store an uploaded image under a generated name and return that name."""
    if file is None or not file.filename:
        raise InvalidInput("No file uploaded")

    if not (file.mimetype or "").startswith("image/"):
        raise InvalidInput("Only image files are allowed")

    data = file.stream.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise InvalidInput(f"Image exceeds the {max_bytes // (1024 * 1024)} MB limit")

    os.makedirs(folder, exist_ok=True)
    filename = unique_name(file.filename)
    with open(os.path.join(folder, filename), "wb") as fh:
        fh.write(data)

    current_app.logger.info("Stored image %s (%d bytes)", filename, len(data))
    return filename
