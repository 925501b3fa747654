import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock

import requests

from freshrss_filter.errors import FetchError, RemediationError
from freshrss_filter.logics.fever_client import FeverClient

BASE_URL = "https://rss.example.com"

def response(json_body=None, status_code=200):
    mock_response = MagicMock()
    mock_response.status_code = status_code
    mock_response.json.return_value = json_body
    return mock_response

def raw_item(item_id, **overrides):
    item = {
        "id": item_id,
        "feed_id": 3,
        "title": f"Test Item {item_id}",
        "author": "Author",
        "html": "<p>Hello</p>",
        "url": f"https://example.com/{item_id}",
        "is_saved": 0,
        "is_read": 0,
        "created_on_time": 1609459200,
    }
    item.update(overrides)
    return item

def client_with(session):
    return FeverClient(base_url=BASE_URL + "/", api_key="test-key", session=session)

def test_list_unread_ids():
    session = MagicMock()
    session.post.return_value = response({"api_version": 3, "auth": 1, "unread_item_ids": "1,2, 3,,x"})

    ids = client_with(session).list_unread_ids()

    assert ids == ["1", "2", "3"]
    session.post.assert_called_once_with(
        f"{BASE_URL}/api/fever.php?api&unread_item_ids",
        data={"api_key": "test-key"},
        timeout=30.0,
    )

def test_list_unread_ids_empty():
    session = MagicMock()
    session.post.return_value = response({"auth": 1, "unread_item_ids": ""})

    assert client_with(session).list_unread_ids() == []

def test_fetch_parses_items():
    session = MagicMock()
    session.post.return_value = response({"items": [raw_item(1), raw_item("2", author=None)]})

    items = client_with(session).fetch(["1", "2"])

    assert [item.id for item in items] == ["1", "2"]
    assert items[0].title == "Test Item 1"
    assert items[0].html == "<p>Hello</p>"
    assert items[0].created_at == datetime(2021, 1, 1, tzinfo=timezone.utc)
    assert items[1].author is None
    assert session.post.call_args.args[0] == f"{BASE_URL}/api/fever.php?api&items&with_ids=1,2"

def test_fetch_without_ids_makes_no_request():
    session = MagicMock()

    assert client_with(session).fetch([]) == []
    session.post.assert_not_called()

@pytest.mark.parametrize(
    "unread_count, expected_fetch_calls",
    [
        (0, 0),
        (1, 1),
        (50, 1),
        (51, 2),
        (120, 3),
    ]
)
def test_fetch_unread_items_chunks(unread_count, expected_fetch_calls):
    ids = [str(index) for index in range(1, unread_count + 1)]

    def post(url, data, timeout):
        if url.endswith("unread_item_ids"):
            return response({"unread_item_ids": ",".join(ids)})
        with_ids = url.split("with_ids=")[1].split(",")
        assert len(with_ids) <= 50
        return response({"items": [raw_item(item_id) for item_id in with_ids]})

    session = MagicMock()
    session.post.side_effect = post

    items = client_with(session).fetch_unread_items()

    assert [item.id for item in items] == ids
    assert session.post.call_count == expected_fetch_calls + 1

@pytest.mark.parametrize("status_code", [401, 500, 503])
def test_fetch_error_status(status_code):
    session = MagicMock()
    session.post.return_value = response({}, status_code=status_code)

    with pytest.raises(FetchError) as error:
        client_with(session).list_unread_ids()
    assert error.value.status_code == status_code

def test_fetch_transport_error():
    session = MagicMock()
    session.post.side_effect = requests.ConnectionError("refused")

    with pytest.raises(FetchError):
        client_with(session).fetch(["1"])

def test_mark_read():
    session = MagicMock()
    session.post.return_value = response({"auth": 1})

    client_with(session).mark_read("42")

    assert session.post.call_args.args[0] == f"{BASE_URL}/api/fever.php?api&mark=item&as=read&id=42"

def test_soft_delete_marks_read():
    session = MagicMock()
    session.post.return_value = response({"auth": 1})

    client_with(session).soft_delete("42")

    assert session.post.call_args.args[0] == f"{BASE_URL}/api/fever.php?api&mark=item&as=read&id=42"

def test_mark_read_error():
    session = MagicMock()
    session.post.return_value = response({}, status_code=500)

    with pytest.raises(RemediationError) as error:
        client_with(session).mark_read("42")
    assert error.value.status_code == 500
