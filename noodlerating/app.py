"""HTTP API for submitting, rating and listing noodles."""

from __future__ import annotations

import argparse
import base64
import binascii
import json
import re
import sqlite3
import threading

from flask import Flask, Response, abort, request

from noodlerating.cors import add_cors_headers
from noodlerating.db import Db, StorableNoodle

FORM_LIMIT = 64 * 1024 * 1024
_UNSIGNED = re.compile(r"\+?[0-9]+")


class ImageDecodeError(ValueError):
    """Raised when submitted image data cannot be decoded."""


def decode_image_for_processing(image_data: str) -> bytes:
    """Decode an image given as plain base64 or as a base64 data URL."""
    if image_data.startswith("data:"):
        parts = image_data.split(",")
        if len(parts) < 2:
            raise ImageDecodeError("Invalid data URL format")
        encoded = parts[1]
    else:
        encoded = image_data
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageDecodeError(f"Failed to decode base64 data: {exc}") from exc


def _text(body: str) -> Response:
    return Response(body, mimetype="text/plain")


def _required(name: str) -> str:
    value = request.form.get(name)
    if value is None:
        abort(422)
    return value


def _unsigned(name: str) -> int:
    value = _required(name)
    if not _UNSIGNED.fullmatch(value):
        abort(422)
    return int(value)


def create_app(db: Db) -> Flask:
    """Build the web application serving the given database."""
    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = FORM_LIMIT
    app.config["MAX_FORM_MEMORY_SIZE"] = FORM_LIMIT
    lock = threading.Lock()
    app.after_request(add_cors_headers)

    @app.post("/api/noodle")
    def create_noodle():
        name = _required("name")
        img = _required("img")
        rating = _unsigned("rating")
        description = request.form.get("description")
        try:
            img_data = decode_image_for_processing(img)
        except ImageDecodeError as exc:
            return _text(f"Error processing image: {exc}")
        noodle = StorableNoodle.create(name, description, img_data, rating)
        try:
            with lock:
                db.store_noodle(noodle)
        except sqlite3.Error as exc:
            return _text(f"Failed to store noodle: {exc}")
        return _text("Ok")

    @app.post("/api/rate")
    def rate_noodle():
        noodle_id = _unsigned("noodle_id")
        rating = _unsigned("rating")
        review = request.form.get("review")
        try:
            with lock:
                db.rate_noodle(noodle_id, rating, review)
        except sqlite3.Error as exc:
            return _text(f"Failed to rate noodle: {exc}")
        return _text("Ok")

    @app.get("/api/noodles")
    def get_noodles():
        try:
            with lock:
                noodles = db.fetch_noodles()
        except sqlite3.Error as exc:
            body = json.dumps({"error": f"Failed to fetch noodles from database: {exc}"})
            return Response(body, mimetype="application/json")
        payload = [
            {
                "id": noodle.id,
                "name": noodle.name,
                "description": noodle.description,
                "img": base64.b64encode(noodle.img).decode("ascii"),
                "current_rating": noodle.current_rating,
                "ratings": [
                    {"noodle_id": r.noodle_id, "rating": r.rating, "review": r.review}
                    for r in noodle.ratings
                ],
            }
            for noodle in noodles
        ]
        return Response(json.dumps(payload, separators=(",", ":")), mimetype="application/json")

    @app.get("/health")
    def health():
        return _text("OK")

    return app


def main(argv=None) -> None:
    """Run the noodle rating server."""
    parser = argparse.ArgumentParser(description="Serve the noodle rating API.")
    parser.add_argument("--db", default="noodles.db", help="database file")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args(argv)

    with Db(args.db) as db:
        create_app(db).run(host=args.host, port=args.port)


if __name__ == "__main__":
    main()