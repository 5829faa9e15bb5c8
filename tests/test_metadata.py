"""Tests for EXIF access and filename date inference."""

import json
import subprocess
from pathlib import Path
from typing import Any, Dict, List
from unittest.mock import MagicMock, patch

import pytest

from mediasweep.errors import MetadataError
from mediasweep.metadata import (
    extract_date_from_filename,
    get_camera_model,
    read_exif_metadata,
    scan_missing_dates,
    write_exif_date_if_missing,
    write_exif_keywords,
)


def _exiftool_result(records: List[Dict[str, Any]], returncode: int = 0) -> MagicMock:
    return MagicMock(returncode=returncode, stdout=json.dumps(records), stderr="")


class TestExtractDateFromFilename:
    """Tests for filename date patterns."""

    def test_whatsapp_android(self) -> None:
        """Test IMG-YYYYMMDD-WA names."""
        result = extract_date_from_filename("IMG-20240115-WA0042.jpg")
        assert result is not None
        assert result.date == "2024-01-15"
        assert result.source == "WhatsApp"
        assert result.time is None

    def test_whatsapp_ios(self) -> None:
        """Test WhatsApp iOS names with a time."""
        result = extract_date_from_filename("WhatsApp Image 2024-01-15 at 10.30.45.jpeg")
        assert result is not None
        assert result.date == "2024-01-15"
        assert result.time == "10:30:45"
        assert result.source == "WhatsApp"

    def test_screenshot_mac(self) -> None:
        """Test macOS screenshot names."""
        result = extract_date_from_filename("Screenshot 2024-01-15 at 14.30.00.png")
        assert result is not None
        assert result.time == "14:30:00"
        assert result.source == "Screenshot"

    @pytest.mark.parametrize("name", ["20240115_143000.jpg", "IMG_20240115_143000.jpg"])
    def test_camera(self, name: str) -> None:
        """Test Android and iOS camera names."""
        result = extract_date_from_filename(name)
        assert result is not None
        assert result.date == "2024-01-15"
        assert result.time == "14:30:00"
        assert result.source == "Camera"

    def test_generic(self) -> None:
        """Test a bare date anywhere in the name."""
        result = extract_date_from_filename("photo_2024-03-20_something.jpg")
        assert result is not None
        assert result.date == "2024-03-20"
        assert result.source == "Filename"

    def test_no_match(self) -> None:
        """Test a name without any date."""
        assert extract_date_from_filename("random_image.jpg") is None

    def test_invalid_date(self) -> None:
        """Test that an impossible month is rejected."""
        assert extract_date_from_filename("20241599_143000.jpg") is None


class TestReadExifMetadata:
    """Tests for reading metadata through exiftool."""

    @patch("mediasweep.metadata.subprocess.run")
    def test_fields_and_keywords(self, mock_run: MagicMock) -> None:
        """Test field mapping and keyword merging."""
        mock_run.return_value = _exiftool_result(
            [
                {
                    "DateTimeOriginal": "2024:01:15 10:00:00",
                    "Make": "Canon ",
                    "Model": "EOS R5",
                    "Keywords": ["beach", "family"],
                    "XPKeywords": "family; sunset;",
                }
            ]
        )

        metadata = read_exif_metadata("/p/a.jpg")

        assert metadata.date_time_original == "2024:01:15 10:00:00"
        assert metadata.create_date is None
        assert metadata.keywords == ["beach", "family", "sunset"]
        assert metadata.camera_model == "Canon EOS R5"
        assert mock_run.call_args[0][0][0] == "exiftool"
        assert mock_run.call_args[0][0][-1] == "/p/a.jpg"

    @patch("mediasweep.metadata.subprocess.run")
    def test_exiftool_failure(self, mock_run: MagicMock) -> None:
        """Test that a failing exiftool raises MetadataError."""
        mock_run.return_value = MagicMock(returncode=1, stdout="", stderr="bad file")

        with pytest.raises(MetadataError, match="bad file"):
            read_exif_metadata("/p/a.jpg")

    @patch("mediasweep.metadata.subprocess.run", side_effect=FileNotFoundError)
    def test_exiftool_missing(self, mock_run: MagicMock) -> None:
        """Test that a missing exiftool raises MetadataError."""
        with pytest.raises(MetadataError, match="Failed to run"):
            read_exif_metadata("/p/a.jpg")

    @patch("mediasweep.metadata.subprocess.run")
    def test_empty_output(self, mock_run: MagicMock) -> None:
        """Test that an empty record list means no EXIF data."""
        mock_run.return_value = _exiftool_result([])

        with pytest.raises(MetadataError, match="No EXIF data"):
            read_exif_metadata("/p/a.jpg")


class TestGetCameraModel:
    """Tests for the camera label."""

    @patch("mediasweep.metadata.subprocess.run")
    def test_model_only(self, mock_run: MagicMock) -> None:
        """Test a file with only a model tag."""
        mock_run.return_value = _exiftool_result([{"Model": "Pixel 8"}])
        assert get_camera_model("/p/a.jpg") == "Pixel 8"

    @patch("mediasweep.metadata.subprocess.run")
    def test_unreadable_is_none(self, mock_run: MagicMock) -> None:
        """Test that unreadable metadata counts as no data."""
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="exiftool", timeout=30)
        assert get_camera_model("/p/a.jpg") is None


class TestWriteExif:
    """Tests for writing metadata."""

    @patch("mediasweep.metadata.subprocess.run")
    def test_existing_date_is_kept(self, mock_run: MagicMock) -> None:
        """Test that an existing DateTimeOriginal is never overwritten."""
        mock_run.return_value = _exiftool_result(
            [{"DateTimeOriginal": "2020:01:01 00:00:00"}]
        )

        message = write_exif_date_if_missing("/p/a.jpg", "2024-01-15")

        assert message == "Date already exists, skipping"
        assert mock_run.call_count == 1

    @patch("mediasweep.metadata.subprocess.run")
    def test_missing_date_is_written(self, mock_run: MagicMock) -> None:
        """Test that a missing date is written with a noon default."""
        mock_run.side_effect = [
            _exiftool_result([{"Make": "Canon"}]),
            MagicMock(returncode=0, stdout="1 image files updated", stderr=""),
        ]

        message = write_exif_date_if_missing("/p/a.jpg", "2024-01-15")

        assert message == "Date written: 2024:01:15 12:00:00"
        write_args = mock_run.call_args_list[1][0][0]
        assert "-DateTimeOriginal=2024:01:15 12:00:00" in write_args
        assert "-overwrite_original" in write_args

    @patch("mediasweep.metadata.subprocess.run")
    def test_keywords(self, mock_run: MagicMock) -> None:
        """Test keyword tag formatting."""
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")

        message = write_exif_keywords("/p/a.jpg", ["beach", "sunset"])

        assert message == "Keywords written: beach; sunset"
        args = mock_run.call_args[0][0]
        assert "-XPKeywords=beach; sunset" in args
        assert "-IPTC:Keywords=beach, sunset" in args

    @patch("mediasweep.metadata.subprocess.run")
    def test_no_keywords(self, mock_run: MagicMock) -> None:
        """Test that an empty keyword list does nothing."""
        assert write_exif_keywords("/p/a.jpg", []) == "No keywords to write"
        mock_run.assert_not_called()


class TestScanMissingDates:
    """Tests for directory date status."""

    @patch("mediasweep.metadata.subprocess.run")
    def test_only_media_files(self, mock_run: MagicMock, tmp_path: Path) -> None:
        """Test that only image and video files are reported."""
        (tmp_path / "IMG-20240115-WA0001.jpg").touch()
        (tmp_path / "clip.MOV").touch()
        (tmp_path / "notes.txt").touch()
        (tmp_path / "album").mkdir()
        mock_run.return_value = _exiftool_result([{"Model": "iPhone"}])

        results = scan_missing_dates(str(tmp_path))

        names = [Path(r.file_path).name for r in results]
        assert names == ["IMG-20240115-WA0001.jpg", "clip.MOV"]
        assert results[0].has_date is False
        assert results[0].camera_model == "iPhone"
        assert results[0].extracted_date is not None
        assert results[1].extracted_date is None

    def test_missing_directory(self, tmp_path: Path) -> None:
        """Test that an unreadable directory raises MetadataError."""
        with pytest.raises(MetadataError):
            scan_missing_dates(str(tmp_path / "nope"))
