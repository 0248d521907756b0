"""Tests for local/server path classification."""

import string

from hmconfig.core.paths import (
    PathKind,
    classify_path,
    is_likely_path,
    is_network_share_value,
    is_server_path,
)


class TestClassifyPath:
    """Tests for classify_path."""

    def test_unc_is_server(self) -> None:
        result = classify_path("\\\\fileserver\\cam\\tools.db")

        assert result.kind == PathKind.SERVER
        assert result.drive == "network-share"
        assert result.category == "UNC-network-share"
        assert result.is_unc

    def test_local_drives(self) -> None:
        for letter in "CDEF":
            result = classify_path(f"{letter}:\\data\\file.txt")
            assert result.kind == PathKind.LOCAL
            assert result.drive == letter
            assert result.category == f"local-drive-{letter}"

    def test_every_other_drive_is_server(self) -> None:
        for letter in string.ascii_uppercase:
            if letter in "CDEF":
                continue
            result = classify_path(f"{letter}:\\share\\file.txt")
            assert result.kind == PathKind.SERVER, letter
            assert result.category == f"server-drive-{letter}"

    def test_lowercase_drive_letter(self) -> None:
        assert classify_path("p:\\shared\\x.cfg").kind == PathKind.SERVER
        assert classify_path("c:\\cache\\x.cfg").kind == PathKind.LOCAL

    def test_posix_path_is_unclear(self) -> None:
        result = classify_path("/mnt/share/file")

        assert result.kind == PathKind.UNCLEAR
        assert result.drive == "unix-path"

    def test_unrecognized_format(self) -> None:
        result = classify_path("just some text")

        assert result.kind == PathKind.UNCLEAR
        assert result.drive == "unknown"
        assert "not recognized" in result.note

    def test_every_likely_path_gets_a_kind(self) -> None:
        samples = ["C:\\a", "Z:\\b\\c", "\\\\srv\\x", "/usr/share", "Q:\\"]
        for sample in samples:
            assert is_likely_path(sample)
            assert classify_path(sample).kind in (PathKind.LOCAL, PathKind.SERVER, PathKind.UNCLEAR)


class TestIsLikelyPath:
    """Tests for the path pre-filter."""

    def test_accepts_path_shapes(self) -> None:
        assert is_likely_path("C:\\x")
        assert is_likely_path("\\\\server\\share")
        assert is_likely_path("/opt/x")

    def test_rejects_non_paths(self) -> None:
        assert not is_likely_path("ab")
        assert not is_likely_path("hello world")
        assert not is_likely_path("C:relative")
        assert not is_likely_path("/ab")
        assert not is_likely_path("\\\\server")
        assert not is_likely_path(None)
        assert not is_likely_path(42)


class TestServerHelpers:
    """Tests for is_server_path and is_network_share_value."""

    def test_is_server_path(self) -> None:
        assert is_server_path("Y:\\Westcam\\tools")
        assert is_server_path("\\\\srv\\share")
        assert not is_server_path("C:\\Program Files")
        assert not is_server_path("/mnt/share")
        assert not is_server_path(None)
        assert not is_server_path("")

    def test_network_share_value_needs_a_path_shape(self) -> None:
        assert is_network_share_value("P:\\machines\\a.mdf")
        assert not is_network_share_value("P:")
        assert not is_network_share_value("C:\\local")
        assert not is_network_share_value(None)
