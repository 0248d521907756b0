"""Tests for archive validation and extraction."""

import tempfile
import zipfile
from pathlib import Path
from unittest.mock import patch

import pytest

from hmconfig.core.archive import ArchiveExtractor
from hmconfig.core.results import ErrorKind

MANIFEST = (
    '<?xml version="1.0" encoding="utf-8"?>\n'
    '<hyperMILL Name="hyperMILL" MajorVersion="33" MinorVersion="0">'
    "<Settings.UserSettings>"
    '<UserDirectories Key="AutomationCenterUser">'
    '<PackageDirectory Path="[USER_CFG]\\USERS\\[USER]\\AutomationCenter"/>'
    "</UserDirectories>"
    "</Settings.UserSettings>"
    "</hyperMILL>"
)


def make_archive(path: Path, members: dict[str, str]) -> Path:
    """Write a zip archive with the given text members."""
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, content in members.items():
            archive.writestr(name, content)
    return path


def scratch_dirs(directory: Path) -> list[Path]:
    return [p for p in directory.iterdir() if p.name.startswith(".tmp_")]


class TestExtractSuccess:
    """Tests for successful extraction."""

    def test_extracts_and_parses(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            archive = make_archive(
                Path(tmpdir) / "export.omSettings",
                {"XSREGISTER.XML": MANIFEST, "extra/readme.txt": "hello"},
            )
            extractor = ArchiveExtractor()

            result = extractor.extract(archive)

            assert result.success
            assert result.config is not None
            assert result.config.version.major == "33"
            assert result.scratch_dir is not None and result.scratch_dir.is_dir()
            assert (result.scratch_dir / "extra" / "readme.txt").read_text() == "hello"
            assert result.manifest_path == result.scratch_dir / "XSREGISTER.XML"

            scratch = result.scratch_dir
            extractor.cleanup(result)
            assert not scratch.exists()
            assert result.scratch_dir is None

    def test_scratch_dirs_are_unique(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            archive = make_archive(Path(tmpdir) / "export.omSettings", {"XSREGISTER.XML": MANIFEST})
            extractor = ArchiveExtractor()

            first = extractor.extract(archive)
            second = extractor.extract(archive)

            assert first.scratch_dir != second.scratch_dir
            extractor.cleanup(first)
            extractor.cleanup(second)
            assert scratch_dirs(Path(tmpdir)) == []

    def test_scratch_root_override(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            archive = make_archive(Path(tmpdir) / "export.omSettings", {"XSREGISTER.XML": MANIFEST})
            scratch_root = Path(tmpdir) / "scratch"

            result = ArchiveExtractor(scratch_root=scratch_root).extract(archive)

            assert result.success
            assert result.scratch_dir is not None
            assert result.scratch_dir.parent == scratch_root

    def test_manifest_name_is_case_insensitive(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            archive = make_archive(Path(tmpdir) / "export.omSettings", {"XsRegister.xml": MANIFEST})

            result = ArchiveExtractor().extract(archive)

            assert result.success
            ArchiveExtractor().cleanup(result)

    def test_members_outside_root_are_skipped(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            archive = make_archive(
                Path(tmpdir) / "export.omSettings",
                {"XSREGISTER.XML": MANIFEST, "../escaped.txt": "nope"},
            )

            result = ArchiveExtractor().extract(archive)

            assert result.success
            assert not (Path(tmpdir) / "escaped.txt").exists()
            ArchiveExtractor().cleanup(result)


class TestExtractFailures:
    """Tests for failures, which must leave no scratch directory behind."""

    def test_missing_archive(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            result = ArchiveExtractor().extract(Path(tmpdir) / "missing.omSettings")

            assert not result.success
            assert result.error_kind == ErrorKind.NOT_FOUND

    def test_bad_signature(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            archive = Path(tmpdir) / "bad.omSettings"
            archive.write_bytes(b"\x00\x00not a zip at all")

            result = ArchiveExtractor().extract(archive)

            assert not result.success
            assert result.error_kind == ErrorKind.INVALID_FORMAT
            assert result.scratch_dir is None
            assert scratch_dirs(Path(tmpdir)) == []

    def test_corrupt_zip_after_signature(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            archive = Path(tmpdir) / "corrupt.omSettings"
            archive.write_bytes(b"PK garbage that is not a zip directory")

            result = ArchiveExtractor().extract(archive)

            assert not result.success
            assert result.error_kind == ErrorKind.INVALID_FORMAT
            assert scratch_dirs(Path(tmpdir)) == []

    def test_manifest_missing_cleans_up(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            archive = make_archive(Path(tmpdir) / "export.omSettings", {"other.xml": "<x/>"})

            result = ArchiveExtractor().extract(archive)

            assert not result.success
            assert result.error_kind == ErrorKind.MANIFEST_MISSING
            assert result.scratch_dir is None
            assert scratch_dirs(Path(tmpdir)) == []

    def test_nested_manifest_does_not_count(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            archive = make_archive(Path(tmpdir) / "export.omSettings", {"sub/XSREGISTER.XML": MANIFEST})

            result = ArchiveExtractor().extract(archive)

            assert result.error_kind == ErrorKind.MANIFEST_MISSING
            assert scratch_dirs(Path(tmpdir)) == []

    def test_unparseable_manifest_cleans_up(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            archive = make_archive(Path(tmpdir) / "export.omSettings", {"XSREGISTER.XML": "<hyperMILL"})

            result = ArchiveExtractor().extract(archive)

            assert not result.success
            assert result.error_kind == ErrorKind.PARSE_ERROR
            assert scratch_dirs(Path(tmpdir)) == []

    def test_damaged_compressed_data(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            archive = make_archive(
                Path(tmpdir) / "damaged.omSettings",
                {"XSREGISTER.XML": MANIFEST * 20},
            )
            data = bytearray(archive.read_bytes())
            start = 30 + len("XSREGISTER.XML")
            data[start : start + 16] = b"\xff" * 16
            archive.write_bytes(bytes(data))

            result = ArchiveExtractor().extract(archive)

            assert not result.success
            assert result.error_kind == ErrorKind.INVALID_FORMAT
            assert scratch_dirs(Path(tmpdir)) == []

    @pytest.mark.parametrize(
        "error",
        [
            EOFError("truncated member"),
            RuntimeError("File is encrypted, password required for extraction"),
            NotImplementedError("That compression method is not supported"),
        ],
    )
    def test_unreadable_members(self, error: Exception) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            archive = make_archive(Path(tmpdir) / "export.omSettings", {"XSREGISTER.XML": MANIFEST})

            with patch.object(ArchiveExtractor, "_unpack", side_effect=error):
                result = ArchiveExtractor().extract(archive)

            assert result.error_kind == ErrorKind.INVALID_FORMAT
            assert scratch_dirs(Path(tmpdir)) == []

    def test_scratch_directory_not_creatable(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            archive = make_archive(Path(tmpdir) / "export.omSettings", {"XSREGISTER.XML": MANIFEST})

            with patch(
                "hmconfig.core.archive.tempfile.mkdtemp",
                side_effect=PermissionError(13, "Permission denied"),
            ):
                result = ArchiveExtractor().extract(archive)

            assert not result.success
            assert result.error_kind == ErrorKind.IO_ERROR
            assert result.scratch_dir is None
            assert scratch_dirs(Path(tmpdir)) == []
