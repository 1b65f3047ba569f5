"""
Tests for SAS field formatting helpers.

Author: BlobAuth Team
Date: 2026-10-18
"""

from datetime import datetime, timedelta, timezone

import pytest

from blobauth.auth.exceptions import SigningInputError
from blobauth.sas.shared import (
    SASPermission,
    SASResourceType,
    canonicalized_resource,
    join_path,
    se,
    sp,
    sr,
    st,
    sv,
)

START = datetime(2022, 10, 10, 10, 10, 0, tzinfo=timezone.utc)


class TestSignedPermissions:
    """Test sp ordering and deduplication."""

    def test_single(self):
        assert sp([SASPermission.READ]) == "r"

    def test_canonical_order(self):
        assert sp([SASPermission.WRITE, SASPermission.READ]) == "rw"
        assert sp(["list", "delete", "create", "add", "read"]) == "racdl"

    def test_full_order(self):
        assert sp(list(SASPermission)) == "racwdxltmeopyfi"

    def test_duplicates_collapsed(self):
        assert sp(["read", SASPermission.READ, "WRITE", "write"]) == "rw"

    def test_order_independent(self):
        assert sp(["tags", "move", "read"]) == sp(["read", "move", "tags"]) == "rtm"

    def test_empty(self):
        assert sp([]) == ""

    def test_unknown_permission(self):
        with pytest.raises(SigningInputError):
            sp(["fly"])

    def test_letter_is_not_a_name(self):
        with pytest.raises(SigningInputError):
            sp(["r"])


class TestSignedResource:
    """Test sr values."""

    @pytest.mark.parametrize(
        "resource_type,expected",
        [
            (SASResourceType.BLOB, "b"),
            (SASResourceType.BLOB_VERSION, "bv"),
            (SASResourceType.BLOB_SNAPSHOT, "bs"),
            (SASResourceType.CONTAINER, "c"),
            (SASResourceType.DIRECTORY, "d"),
            ("container", "c"),
            ("blob_version", "bv"),
        ],
    )
    def test_values(self, resource_type, expected):
        assert sr(resource_type) == expected

    def test_unknown_resource_type(self):
        with pytest.raises(SigningInputError):
            sr("queue")


class TestTimes:
    """Test st and se formatting."""

    def test_version(self):
        assert sv() == "2020-12-06"

    def test_start_truncated(self):
        assert st(START.replace(microsecond=999999)) == "2022-10-10T10:10:00Z"

    def test_start_converted_to_utc(self):
        local = datetime(2022, 10, 10, 12, 10, 0, tzinfo=timezone(timedelta(hours=2)))
        assert st(local) == "2022-10-10T10:10:00Z"

    def test_naive_start_is_utc(self):
        assert st(datetime(2022, 10, 10, 10, 10, 0)) == "2022-10-10T10:10:00Z"

    def test_expiry_seconds(self):
        assert se(START, 3600) == "2022-10-10T11:10:00Z"

    def test_expiry_timedelta(self):
        assert se(START, timedelta(days=2)) == "2022-10-12T10:10:00Z"

    def test_expiry_absolute(self):
        assert se(START, datetime(2023, 1, 1, tzinfo=timezone.utc)) == "2023-01-01T00:00:00Z"

    def test_expiry_truncated(self):
        assert se(START, 0.5) == "2022-10-10T10:10:00Z"

    @pytest.mark.parametrize("expiry", ["3600", None, True])
    def test_invalid_expiry(self, expiry):
        with pytest.raises(SigningInputError):
            se(START, expiry)


class TestPaths:
    """Test resource path helpers."""

    def test_join_path_collapses_slashes(self):
        assert join_path("my_container", "/folder/blob.mp4") == "my_container/folder/blob.mp4"
        assert join_path("my_container", "/") == "my_container"
        assert join_path("a/", "//b//", "c") == "a/b/c"

    def test_canonicalized_resource(self):
        assert canonicalized_resource("my_container", "storage_account") == (
            "/blob/storage_account/my_container"
        )
        assert canonicalized_resource("my_container/folder/blob.mp4", "acct") == (
            "/blob/acct/my_container/folder/blob.mp4"
        )
