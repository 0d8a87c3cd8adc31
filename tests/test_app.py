import base64
from unittest import mock

import pytest

from noodlerating.app import ImageDecodeError, create_app, decode_image_for_processing
from noodlerating.db import Db

IMAGE = b"\x89PNG fake image bytes"
IMAGE_B64 = base64.b64encode(IMAGE).decode()


@pytest.fixture
def client():
    database = Db(":memory:")
    with mock.patch("noodlerating.db.subprocess.run", side_effect=FileNotFoundError("ffmpeg")):
        yield create_app(database).test_client()
    database.close()


def test_decode_plain_base64():
    assert decode_image_for_processing(IMAGE_B64) == IMAGE


def test_decode_data_url():
    assert decode_image_for_processing("data:image/png;base64," + IMAGE_B64) == IMAGE


def test_decode_data_url_without_comma():
    with pytest.raises(ImageDecodeError, match="Invalid data URL format"):
        decode_image_for_processing("data:image/png;base64")


def test_decode_invalid_base64():
    with pytest.raises(ImageDecodeError, match="Failed to decode base64 data"):
        decode_image_for_processing("not*base64")


def test_health(client):
    response = client.get("/health")
    assert response.get_data(as_text=True) == "OK"
    assert response.headers["Access-Control-Allow-Origin"] == "*"


def test_create_and_list_noodle(client):
    response = client.post(
        "/api/noodle",
        data={"name": "Ramen", "description": "spicy", "img": IMAGE_B64, "rating": "4"},
    )
    assert response.get_data(as_text=True) == "Ok"

    listing = client.get("/api/noodles")
    assert listing.mimetype == "application/json"
    [noodle] = listing.get_json()
    assert noodle["name"] == "Ramen"
    assert noodle["description"] == "spicy"
    assert base64.b64decode(noodle["img"]) == IMAGE
    assert noodle["current_rating"] is None
    assert noodle["ratings"] == [{"noodle_id": noodle["id"], "rating": 4, "review": None}]


def test_create_with_data_url_and_no_description(client):
    client.post(
        "/api/noodle",
        data={"name": "Udon", "img": "data:image/png;base64," + IMAGE_B64, "rating": "2"},
    )
    [noodle] = client.get("/api/noodles").get_json()
    assert noodle["description"] is None
    assert base64.b64decode(noodle["img"]) == IMAGE


def test_create_with_bad_image_stores_nothing(client):
    response = client.post(
        "/api/noodle", data={"name": "Bad", "img": "not*base64", "rating": "1"}
    )
    assert response.get_data(as_text=True).startswith(
        "Error processing image: Failed to decode base64 data"
    )
    assert client.get("/api/noodles").get_json() == []


def test_rate_noodle(client):
    client.post("/api/noodle", data={"name": "Ramen", "img": IMAGE_B64, "rating": "3"})
    [noodle] = client.get("/api/noodles").get_json()
    response = client.post(
        "/api/rate", data={"noodle_id": str(noodle["id"]), "rating": "5", "review": "yum"}
    )
    assert response.get_data(as_text=True) == "Ok"
    [noodle] = client.get("/api/noodles").get_json()
    assert [r["rating"] for r in noodle["ratings"]] == [3, 5]
    assert noodle["ratings"][1]["review"] == "yum"


@pytest.mark.parametrize(
    "path,data",
    [
        ("/api/noodle", {"name": "Ramen", "img": IMAGE_B64}),
        ("/api/noodle", {"name": "Ramen", "img": IMAGE_B64, "rating": "-1"}),
        ("/api/rate", {"noodle_id": "1"}),
        ("/api/rate", {"noodle_id": "x", "rating": "3"}),
    ],
)
def test_invalid_forms_are_rejected(client, path, data):
    assert client.post(path, data=data).status_code == 422
    assert client.get("/api/noodles").get_json() == []