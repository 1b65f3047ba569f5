"""Tests for SignableRequest."""

from blobauth.auth.request import SignableRequest, make_request


class TestSignableRequest:

    def test_str_body_encoded(self):
        request = SignableRequest(method="PUT", url="https://example.com/c/b", body="héllo")
        assert request.body == "héllo".encode("utf-8")

    def test_prepend_returns_copy(self):
        request = SignableRequest(method="GET", url="https://example.com/c", headers=[("a", "1")])
        updated = request.prepend_header("b", "2")

        assert request.headers == [("a", "1")]
        assert updated.headers == [("b", "2"), ("a", "1")]

    def test_get_header_case_insensitive_first_wins(self):
        request = SignableRequest(
            method="GET",
            url="https://example.com/c",
            headers=[("Authorization", "Bearer new"), ("authorization", "Bearer old")],
        )
        assert request.get_header("AUTHORIZATION") == "Bearer new"
        assert request.get_header("missing", "default") == "default"

    def test_effective_headers_drop_shadowed(self):
        request = SignableRequest(
            method="GET",
            url="https://example.com/c",
            headers=[("x-ms-date", "new"), ("Content-Type", "a"), ("X-MS-DATE", "old")],
        )
        assert request.effective_headers() == [("x-ms-date", "new"), ("Content-Type", "a")]

    def test_query_items_combine_url_and_params(self):
        request = SignableRequest(
            method="GET",
            url="https://example.com/c?restype=container",
            params=[("comp", "list"), ("timeout", 30)],
        )
        assert request.query_items() == [
            ("restype", "container"),
            ("comp", "list"),
            ("timeout", "30"),
        ]
        assert request.path == "/c"


def test_make_request_uppercases_method():
    request = make_request("put", "https://example.com/c/b", body="x")
    assert request.method == "PUT"
    assert request.headers == []
    assert request.params == []
