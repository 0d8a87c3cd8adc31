"""HTTP API for uploading and rating noodle dishes, stored in SQLite."""

__version__ = "0.1.0"