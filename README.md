# noodlerating

A small HTTP API for sharing noodle dishes and rating them. The dishes and
their ratings are kept in a SQLite database. When an image is uploaded, the
package tries to turn it into an 800-pixel-wide WebP image by running
`ffmpeg`. If the conversion fails for any reason, including `ffmpeg` not
being installed, the original image bytes are stored instead.

## Installing

```
pip install .
```

WebP conversion needs an `ffmpeg` with `libwebp` support on your `PATH`.

## Running the server

```
noodlerating
```

This opens the database file, creating it if it does not exist yet, and
serves the API with Flask's built-in server. Options:

- `--db PATH`: the database file. The default is `noodles.db` in the current directory.
- `--host HOST`: the address to listen on. The default is `127.0.0.1`.
- `--port PORT`: the port to listen on. The default is `8000`.

Run `noodlerating --help` to see the same list.

## Endpoints

Every response carries permissive CORS headers: any origin, any headers,
credentials allowed, and the methods `POST, GET, PATCH, OPTIONS`.

| Method | Path            | Body (form-encoded)                               | Response                         |
|--------|-----------------|---------------------------------------------------|----------------------------------|
| POST   | `/api/noodle`   | `name`, `description` (optional), `img`, `rating` | `Ok`, or an error message        |
| POST   | `/api/rate`     | `noodle_id`, `rating`, `review` (optional)        | `Ok`, or an error message        |
| GET    | `/api/noodles`  | none                                              | JSON list of noodles             |
| GET    | `/health`       | none                                              | `OK`                             |

Request bodies may be up to 64 MiB.

`img` may be plain base64 or a data URL such as `data:image/jpeg;base64,...`.
If a required field is missing, or if `rating` or `noodle_id` is not a
non-negative whole number, the server answers with status 422. If the image
cannot be decoded, or if the database reports an error, the server answers
with a plain-text message such as `Error processing image: ...` or
`Failed to store noodle: ...`.

In `/api/noodles`, each noodle has:

- `id`
- `name`
- `description`
- `img`: the stored image, as base64
- `current_rating`: always `null` in this listing
- `ratings`: a list of `{noodle_id, rating, review}` entries, in the order they were added

Noodles are listed in order of id. A noodle's initial rating appears as the
first entry in its `ratings`.

## Using it as a library

```python
from noodlerating.db import Db, StorableNoodle
from noodlerating.app import create_app, decode_image_for_processing

with Db("noodles.db") as db:
    image_bytes = decode_image_for_processing("data:image/png;base64,iVBORw0KGgo=")
    db.store_noodle(StorableNoodle.create("Ramen", "Rich broth", image_bytes, 5))
    db.rate_noodle(1, 4, "Great noodles")
    for noodle in db.fetch_noodles():
        print(noodle.name, [r.rating for r in noodle.ratings])

    app = create_app(db)  # a Flask application
```

- `noodlerating.db.convert_to_webp(img_data)` returns the WebP bytes. It raises `ImageConversionError` if the conversion fails.
- `noodlerating.app.decode_image_for_processing` raises `ImageDecodeError`, a subclass of `ValueError`, on malformed input.
- `noodlerating.cors.add_cors_headers(response)` sets the CORS headers on any response object that has a `headers` mapping.

Progress messages, such as conversion steps and migrations, go to the
standard `logging` module under the `noodlerating.db` logger.

## What it does not do

- There is no authentication. Anyone who can reach the server can add noodles and ratings.
- Noodles and ratings cannot be edited or deleted through the API.
- `/api/rate` does not check that the noodle exists.
- The command runs Flask's development server. For production, serve the application returned by `create_app` with a WSGI server.

## Running the tests

```
pip install ".[test]"
pytest
```