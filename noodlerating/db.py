"""SQLite storage for noodles, their images and their ratings."""

from __future__ import annotations

import contextlib
import logging
import sqlite3
import subprocess
import tempfile
import uuid
from dataclasses import dataclass, field
from pathlib import Path

log = logging.getLogger(__name__)

_CREATE_IMAGES = """
CREATE TABLE IF NOT EXISTS noodle_images (
    noodle_id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    description TEXT,
    img BLOB NOT NULL
)
"""

_CREATE_RATINGS = """
CREATE TABLE IF NOT EXISTS noodle_ratings (
    rating_id INTEGER PRIMARY KEY AUTOINCREMENT,
    noodle_id INTEGER NOT NULL,
    rating INTEGER NOT NULL,
    review TEXT,
    FOREIGN KEY (noodle_id) REFERENCES noodle_images (noodle_id)
)
"""

_FETCH_NOODLES = """
SELECT n.noodle_id, n.name, n.description, n.img, r.rating, r.review
FROM noodle_images n
LEFT JOIN noodle_ratings r ON n.noodle_id = r.noodle_id
ORDER BY n.noodle_id, r.rating_id
"""


class ImageConversionError(Exception):
    """Raised when an image cannot be converted to WebP."""


@dataclass
class StorableRating:
    """A single rating given to a noodle."""

    noodle_id: int
    rating: int
    review: str | None = None


@dataclass
class StorableNoodle:
    """A noodle with its image and all ratings it has received."""

    id: int
    name: str
    description: str | None
    img: bytes
    current_rating: int | None = None
    ratings: list[StorableRating] = field(default_factory=list)

    @classmethod
    def create(cls, name, description, img, rating):
        """Build a new, not yet stored noodle carrying an initial rating."""
        return cls(
            id=0,
            name=name,
            description=description,
            img=bytes(img),
            current_rating=rating,
        )


def convert_to_webp(img_data: bytes) -> bytes:
    """Convert image bytes to an 800px-wide WebP image using ffmpeg."""
    temp_dir = Path(tempfile.gettempdir()) / "noodle_images"
    try:
        temp_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ImageConversionError(f"Failed to create temp directory: {exc}") from exc

    stem = uuid.uuid4()
    input_path = temp_dir / f"{stem}_input.jpg"
    output_path = temp_dir / f"{stem}_output.webp"

    try:
        log.info("Saving input image (%d bytes) to %s", len(img_data), input_path)
        try:
            input_path.write_bytes(img_data)
        except OSError as exc:
            raise ImageConversionError(f"Failed to write image data: {exc}") from exc

        command = [
            "ffmpeg",
            "-v", "verbose",
            "-i", str(input_path),
            "-vf", "scale=800:-1",
            "-preset", "photo",
            "-pix_fmt", "yuva420p",
            "-vcodec", "libwebp",
            "-q:v", "90",
            str(output_path),
        ]
        log.info("Running ffmpeg command")
        try:
            result = subprocess.run(command, capture_output=True, check=False)
        except OSError as exc:
            raise ImageConversionError(f"Failed to execute ffmpeg: {exc}") from exc

        if result.returncode != 0:
            stdout = (result.stdout or b"").decode("utf-8", "replace")
            stderr = (result.stderr or b"").decode("utf-8", "replace")
            log.info("ffmpeg stdout: %s", stdout)
            raise ImageConversionError(f"ffmpeg failed: {stderr}")

        try:
            webp_data = output_path.read_bytes()
        except OSError as exc:
            raise ImageConversionError(f"Failed to read WebP file: {exc}") from exc
        log.info("WebP conversion complete, output size: %d bytes", len(webp_data))
        return webp_data
    finally:
        for path in (input_path, output_path):
            with contextlib.suppress(OSError):
                path.unlink(missing_ok=True)


class Db:
    """Noodle database backed by a SQLite file."""

    def __init__(self, path):
        self._connection = sqlite3.connect(str(path), check_same_thread=False)
        self._init()
        self._migrate()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _init(self) -> None:
        with self._connection:
            self._connection.execute(_CREATE_IMAGES)
            self._connection.execute(_CREATE_RATINGS)

    def _migrate(self) -> None:
        (has_review,) = self._connection.execute(
            "SELECT COUNT(*) FROM pragma_table_info('noodle_ratings') WHERE name = 'review'"
        ).fetchone()
        if has_review == 0:
            log.info("Adding 'review' column to noodle_ratings table...")
            with self._connection:
                self._connection.execute("ALTER TABLE noodle_ratings ADD COLUMN review TEXT")
            log.info("Migration complete!")

    def store_noodle(self, noodle: StorableNoodle) -> None:
        """Store a noodle, its image as WebP where possible, and its initial rating."""
        try:
            image = convert_to_webp(noodle.img)
            log.info("Successfully converted image to WebP, size: %d bytes", len(image))
        except ImageConversionError as exc:
            log.warning("Failed to convert image to WebP: %s. Using original image.", exc)
            image = bytes(noodle.img)

        with self._connection:
            cursor = self._connection.execute(
                "INSERT INTO noodle_images (name, description, img) VALUES (?, ?, ?)",
                (noodle.name, noodle.description, image),
            )
            noodle_id = cursor.lastrowid
            if noodle.current_rating is not None:
                self._connection.execute(
                    "INSERT INTO noodle_ratings (noodle_id, rating) VALUES (?, ?)",
                    (noodle_id, noodle.current_rating),
                )

    def rate_noodle(self, noodle_id, rating, review) -> None:
        """Add a rating, with an optional review, to a noodle."""
        with self._connection:
            self._connection.execute(
                "INSERT INTO noodle_ratings (noodle_id, rating, review) VALUES (?, ?, ?)",
                (noodle_id, rating, review),
            )

    def fetch_noodles(self) -> list[StorableNoodle]:
        """Return every noodle, ordered by id, with all its ratings."""
        noodles: dict[int, StorableNoodle] = {}
        for noodle_id, name, description, img, rating, review in self._connection.execute(
            _FETCH_NOODLES
        ):
            noodle = noodles.get(noodle_id)
            if noodle is None:
                log.debug("Retrieved image for noodle %d, size: %d bytes", noodle_id, len(img))
                noodle = noodles[noodle_id] = StorableNoodle(
                    id=noodle_id, name=name, description=description, img=bytes(img)
                )
            if isinstance(rating, int) and rating >= 0:
                noodle.ratings.append(StorableRating(noodle_id, rating, review))
        return list(noodles.values())

    def close(self) -> None:
        """Close the underlying connection."""
        self._connection.close()