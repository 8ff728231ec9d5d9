"""Tests for the platform capability table."""

import pytest

from fieldsnap.domain.permissions import Capability
from fieldsnap.platforms import select_profile


def test_android_storage_permission_follows_os_version() -> None:
    modern = select_profile("android", 33)
    legacy = select_profile("android", 32)

    assert (
        modern.permission_id(Capability.MEDIA_STORAGE)
        == "android.permission.READ_MEDIA_IMAGES"
    )
    assert (
        legacy.permission_id(Capability.MEDIA_STORAGE)
        == "android.permission.WRITE_EXTERNAL_STORAGE"
    )


def test_capture_capabilities_differ_by_platform() -> None:
    android = select_profile("android", 34)
    ios = select_profile("ios", 17)

    assert android.capture_capabilities == (
        Capability.CAMERA,
        Capability.MEDIA_STORAGE,
    )
    assert ios.capture_capabilities == (Capability.CAMERA,)
    assert android.reports_permanent_denial
    assert not ios.reports_permanent_denial
    assert ios.reports_unavailable_status
    assert not android.reports_unavailable_status


def test_ios_location_has_two_status_variants() -> None:
    ios = select_profile("ios", 17)
    android = select_profile("android", 34)

    assert ios.variants(Capability.FINE_LOCATION) == (
        "ios.permission.LOCATION_WHEN_IN_USE",
        "ios.permission.LOCATION_ALWAYS",
    )
    assert android.variants(Capability.FINE_LOCATION) == (
        "android.permission.ACCESS_FINE_LOCATION",
    )


def test_normalize_path_strips_file_scheme() -> None:
    profile = select_profile("android", 34)

    assert profile.normalize_path("file:///tmp/a.jpg") == "/tmp/a.jpg"
    assert profile.normalize_path("/tmp/a.jpg") == "/tmp/a.jpg"


def test_unknown_platform_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unsupported platform"):
        select_profile("windows", 11)
