"""
Unit tests for the HTTP asset loader using a mocked requests session.
"""
from unittest.mock import MagicMock

import pytest
import requests

from app.cache import AssetLoadError, EntryState
from app.loader import AssetLoader, blob_decoder


def _response(content: bytes = b"", status: int = 200):
    response = MagicMock()
    response.content = content
    response.status_code = status
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status} Error")
    return response


@pytest.fixture
def http():
    session = MagicMock(spec=requests.Session)
    session.headers = {}
    return session


@pytest.fixture
def loader(store, http):
    return AssetLoader(store, base_url="http://assets.test/data", timeout=5, session=http)


def test_load_fetches_and_resolves(loader, store, http):
    http.get.return_value = _response(b"hello")
    received = []

    result = loader.load("texts/intro.txt", received.append)

    http.get.assert_called_once_with("http://assets.test/data/texts/intro.txt", timeout=5)
    assert received == [b"hello"]
    assert result is None  # slot was pending when get() ran
    assert store.get("texts/intro.txt") == b"hello"


def test_only_first_requester_fetches(loader, store, http):
    store.get("a.txt")  # someone else already owns the load
    loader.load("a.txt")

    http.get.assert_not_called()


def test_cached_asset_is_not_refetched(loader, http):
    http.get.return_value = _response(b"data")
    loader.load("a.txt")
    received = []
    assert loader.load("a.txt", received.append) == b"data"

    assert http.get.call_count == 1
    assert received == [b"data"]


def test_http_error_resolves_as_error(loader, store, http):
    http.get.return_value = _response(status=404)
    ok, failed = [], []

    loader.load("missing.spr", ok.append, failed.append)

    assert ok == []
    assert len(failed) == 1
    assert isinstance(failed[0], AssetLoadError)
    assert failed[0].key == "missing.spr"
    assert store.state("missing.spr") is EntryState.ERROR


def test_connection_error_resolves_as_error(loader, store, http):
    http.get.side_effect = requests.ConnectionError("refused")
    failed = []

    loader.load("a.pal", on_error=failed.append)

    assert "refused" in failed[0].reason


def test_empty_response_is_an_error(loader, store, http):
    http.get.return_value = _response(b"")
    failed = []

    loader.load("a.txt", on_error=failed.append)

    assert failed[0].reason == "empty response"


def test_decoder_selected_by_suffix(loader, store, http):
    http.get.return_value = _response(b"\x01\x02")
    loader.register_decoder(".SPR", lambda key, data: {"key": key, "size": len(data)})

    loader.load("mob.spr")

    assert store.get("mob.spr") == {"key": "mob.spr", "size": 2}


def test_decoder_failure_resolves_as_error(loader, store, http):
    http.get.return_value = _response(b"garbage")

    def bad_decoder(key, data):
        raise ValueError("bad header")

    loader.register_decoder(".pal", bad_decoder)
    failed = []
    loader.load("body.pal", on_error=failed.append)

    assert "bad header" in failed[0].reason
    assert store.state("body.pal") is EntryState.ERROR


def test_blob_decoder_produces_revocable_reference(loader, store, http, ctx):
    http.get.return_value = _response(b"RIFF")
    loader.register_decoder(".wav", blob_decoder(ctx.create_object_url))

    loader.load("sound/hit.wav")
    store.remove(ctx, "sound/hit.wav")

    assert ctx.revoked == ["blob:asset-1"]


def test_url_quotes_key(loader):
    assert loader.url_for("/data/sprite/a b.spr") == "http://assets.test/data/data/sprite/a%20b.spr"
