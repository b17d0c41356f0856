import pytest

from posts_client import codec
from posts_client.errors import DecodeError
from posts_client.models import Post


class TestDecode:
    def test_decodes_wire_record(self):
        post = codec.decode({"userId": 1, "id": 7, "title": "a", "body": "b"})

        assert post == Post(id=7, user_id=1, title="a", body="b")

    def test_round_trip(self):
        post = Post(id=3, user_id=9, title="Hello", body="World\nagain")

        assert codec.decode(codec.encode(post)) == post

    def test_encode_uses_wire_keys(self):
        record = codec.encode(Post(id=1, user_id=2, title="t", body="b"))

        assert record == {"userId": 2, "id": 1, "title": "t", "body": "b"}

    @pytest.mark.parametrize("missing", ["userId", "id", "title", "body"])
    def test_missing_field_fails(self, missing):
        record = {"userId": 1, "id": 1, "title": "a", "body": "b"}
        del record[missing]

        with pytest.raises(DecodeError, match=missing):
            codec.decode(record)

    @pytest.mark.parametrize(
        "field, value",
        [
            ("id", "1"),
            ("userId", 1.5),
            ("id", True),
            ("title", 3),
            ("body", None),
        ],
    )
    def test_wrong_type_fails(self, field, value):
        record = {"userId": 1, "id": 1, "title": "a", "body": "b", field: value}

        with pytest.raises(DecodeError):
            codec.decode(record)

    def test_non_mapping_fails(self):
        with pytest.raises(DecodeError, match="list"):
            codec.decode([1, 2, 3])
