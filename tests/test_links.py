"""Tests for gradeshare.links: share link format and create/open flow."""

import asyncio
from datetime import timedelta
from urllib.parse import parse_qs, urlsplit

import pytest

from gradeshare.cipher import encrypt
from gradeshare.codec import MAX_DECOMPRESSED_BYTES, b64url_encode, compress
from gradeshare.errors import (
    AuthenticationError,
    DecodeError,
    InvalidShareLink,
    ShareError,
    ShareExpired,
    ShareNotFound,
)
from gradeshare.links import (
    build_share_link,
    create_share,
    create_share_async,
    decode_legacy_data,
    encode_legacy_data,
    open_shared_link,
    parse_share_param,
    snapshot_from_url,
)
from gradeshare.models import ShareOptions, ShareSnapshot


BASE = "https://grades.example.org/"
KEY = bytes(range(16))


def _share_value(link: str) -> str:
    return parse_qs(urlsplit(link).query)["share"][0]


# ---------------------------------------------------------------------------
# Link format
# ---------------------------------------------------------------------------


class TestBuildShareLink:
    def test_format(self):
        link = build_share_link(BASE, "abc123", KEY)
        assert link == BASE + "?share=abc123-000102030405060708090a0b0c0d0e0f"

    def test_existing_query(self):
        link = build_share_link("https://x.org/app?lang=ca", "abc", KEY)
        assert link.startswith("https://x.org/app?lang=ca&share=abc-")

    @pytest.mark.parametrize("share_id", ["", "abc-def"])
    def test_bad_id(self, share_id):
        with pytest.raises(InvalidShareLink):
            build_share_link(BASE, share_id, KEY)

    def test_round_trip_with_parse(self):
        link = build_share_link(BASE, "f00d", KEY)
        assert parse_share_param(_share_value(link)) == ("f00d", KEY)


class TestParseShareParam:
    def test_uppercase_hex_accepted(self):
        assert parse_share_param("id1-" + KEY.hex().upper()) == ("id1", KEY)

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "abc",
            "abc-",
            "-" + KEY.hex(),
            "abc-" + KEY.hex()[:-2],
            "abc-" + KEY.hex() + "00",
            "abc-" + "zz" * 16,
            # 256-bit key is valid AES but not what links carry
            "abc-" + (KEY + KEY).hex(),
        ],
    )
    def test_invalid(self, value):
        with pytest.raises(InvalidShareLink):
            parse_share_param(value)

    def test_invalid_link_is_decode_error(self):
        with pytest.raises(DecodeError):
            parse_share_param("abc")


class TestLegacyData:
    def test_round_trip(self, sample_snapshot):
        assert decode_legacy_data(encode_legacy_data(sample_snapshot)) == sample_snapshot

    def test_empty(self):
        with pytest.raises(InvalidShareLink):
            decode_legacy_data("")

    def test_garbage(self):
        with pytest.raises(DecodeError):
            decode_legacy_data("bm90LXpsaWI")

    @pytest.mark.parametrize(
        "raw",
        [
            b'{"v":1,"grades":[{"studentName":"Ana","grade":' + b"9" * 400 + b"}]}",
            b'{"v":1,"grades":[],"options":{"maxPossibleGrade":' + b"9" * 400 + b"}}",
            b"[" * 100000,
        ],
    )
    def test_crafted_data_fails_as_share_error(self, fake_store, raw):
        params = {"data": b64url_encode(compress(raw))}
        with pytest.raises(ShareError):
            open_shared_link(params, fake_store)

    def test_oversized_data(self, fake_store):
        params = {"data": b64url_encode(compress(b" " * (MAX_DECOMPRESSED_BYTES + 1)))}
        with pytest.raises(DecodeError):
            open_shared_link(params, fake_store)


# ---------------------------------------------------------------------------
# create_share / open_shared_link
# ---------------------------------------------------------------------------


class TestCreateShare:
    def test_link_and_store(self, fake_store, sample_snapshot):
        link = create_share(sample_snapshot, fake_store, base_url=BASE, ttl_seconds=3600)

        share_id, key = parse_share_param(_share_value(link))
        assert share_id == "share1"
        assert fake_store.create_calls[0][1] == 3600

        stored_payload = fake_store.create_calls[0][0]
        assert key.hex() not in stored_payload

    def test_open_round_trip(self, fake_store, sample_snapshot):
        link = create_share(sample_snapshot, fake_store, base_url=BASE)
        opened = open_shared_link({"share": _share_value(link)}, fake_store, now=fake_store.now)
        assert opened == sample_snapshot

    def test_snapshot_from_url(self, fake_store, sample_snapshot):
        link = create_share(sample_snapshot, fake_store, base_url=BASE)
        assert snapshot_from_url(link, fake_store, now=fake_store.now) == sample_snapshot

    def test_default_base_url_from_env(self, fake_store, sample_snapshot, monkeypatch):
        monkeypatch.setenv("GRADESHARE_PUBLIC_URL", "https://env.example.org/")
        link = create_share(sample_snapshot, fake_store)
        assert link.startswith("https://env.example.org/?share=share1-")

    def test_async(self, fake_store, sample_snapshot):
        link = asyncio.run(create_share_async(sample_snapshot, fake_store, base_url=BASE, ttl_seconds=120))
        assert fake_store.create_calls[0][1] == 120
        assert open_shared_link({"share": _share_value(link)}, fake_store, now=fake_store.now) == sample_snapshot

    def test_empty_snapshot(self, fake_store):
        snap = ShareSnapshot(options=ShareOptions(pass_threshold=6.0))
        link = create_share(snap, fake_store, base_url=BASE)
        assert snapshot_from_url(link, fake_store, now=fake_store.now) == snap


class TestOpenSharedLink:
    def test_expired_even_if_store_returns_row(self, fake_store, sample_snapshot):
        link = create_share(sample_snapshot, fake_store, base_url=BASE, ttl_seconds=60)
        later = fake_store.now + timedelta(seconds=61)
        with pytest.raises(ShareExpired):
            open_shared_link({"share": _share_value(link)}, fake_store, now=later)

    def test_exactly_at_expiry_is_valid(self, fake_store, sample_snapshot):
        link = create_share(sample_snapshot, fake_store, base_url=BASE, ttl_seconds=60)
        at = fake_store.now + timedelta(seconds=60)
        assert open_shared_link({"share": _share_value(link)}, fake_store, now=at) == sample_snapshot

    def test_not_found(self, fake_store):
        with pytest.raises(ShareNotFound):
            open_shared_link({"share": "missing-" + KEY.hex()}, fake_store, now=fake_store.now)

    def test_wrong_key(self, fake_store, sample_snapshot):
        create_share(sample_snapshot, fake_store, base_url=BASE)
        with pytest.raises(AuthenticationError):
            open_shared_link({"share": "share1-" + KEY.hex()}, fake_store, now=fake_store.now)

    def test_crafted_snapshot_behind_valid_key(self, fake_store):
        enc = encrypt(compress(b"[" * 100000))
        share_id = fake_store.create(f"{b64url_encode(enc.iv)}:{b64url_encode(enc.ciphertext)}")
        with pytest.raises(DecodeError):
            open_shared_link({"share": f"{share_id}-{enc.key.hex()}"}, fake_store, now=fake_store.now)

    def test_share_takes_priority_over_data(self, fake_store, sample_snapshot):
        link = create_share(sample_snapshot, fake_store, base_url=BASE)
        other = ShareSnapshot()
        params = {"share": _share_value(link), "data": encode_legacy_data(other)}
        assert open_shared_link(params, fake_store, now=fake_store.now) == sample_snapshot

    def test_legacy_data(self, fake_store, sample_snapshot):
        params = {"data": encode_legacy_data(sample_snapshot)}
        assert open_shared_link(params, fake_store) == sample_snapshot
        assert fake_store.create_calls == []

    @pytest.mark.parametrize("params", [{}, {"share": ""}, {"other": "x"}])
    def test_no_parameters(self, fake_store, params):
        with pytest.raises(InvalidShareLink):
            open_shared_link(params, fake_store)

    def test_url_without_query(self, fake_store):
        with pytest.raises(InvalidShareLink):
            snapshot_from_url(BASE, fake_store)
