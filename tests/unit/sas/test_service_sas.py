"""Tests for service SAS tokens."""

from datetime import datetime, timezone
from urllib.parse import parse_qsl

from blobauth.auth.sharedkey import compute_signature
from blobauth.sas import service_sas
from blobauth.sas.shared import SASPermission, SASResourceType

START = datetime(2022, 10, 10, 10, 10, 0, tzinfo=timezone.utc)
KEY = b"secretkey"


class TestServiceSAS:

    def test_string_to_sign_layout(self):
        result = service_sas.string_to_sign(
            SASResourceType.CONTAINER,
            "my_container",
            (START, 3600),
            [SASPermission.READ],
            "storage_account",
        )

        assert result.split("\n") == [
            "r",
            "2022-10-10T10:10:00Z",
            "2022-10-10T11:10:00Z",
            "/blob/storage_account/my_container",
            "",
            "",
            "",
            "2020-12-06",
            "c",
            "",
            "",
            "",
            "",
            "",
            "",
            "",
        ]

    def test_token_fields(self):
        token = service_sas.build_token(
            SASResourceType.CONTAINER,
            "my_container",
            (START, 3600),
            [SASPermission.READ],
            "storage_account",
            KEY,
        )

        assert token == (
            "sv=2020-12-06&st=2022-10-10T10%3A10%3A00Z&se=2022-10-10T11%3A10%3A00Z"
            "&sr=c&sp=r&sig=NRjiSKbIhZPcu99pYt2bS015eQOMTX8WVIh3hJdj%2Fwk%3D"
        )

    def test_signature_is_hmac_of_string_to_sign(self):
        args = (SASResourceType.BLOB, "c/b.txt", (START, 60), ["read", "write"], "acct")
        token = dict(parse_qsl(service_sas.build_token(*args, KEY)))

        assert token["sig"] == compute_signature(service_sas.string_to_sign(*args), KEY)
        assert token["sr"] == "b"
        assert token["sp"] == "rw"

    def test_permissions_iterable_consumed_once(self):
        token = service_sas.build_token(
            "container",
            "my_container",
            (START, 3600),
            iter([SASPermission.READ]),
            "storage_account",
            KEY,
        )
        assert "sig=NRjiSKbIhZPcu99pYt2bS015eQOMTX8WVIh3hJdj%2Fwk%3D" in token
