"""EXIF metadata via exiftool and capture dates inferred from filenames."""

import json
import logging
import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .errors import MetadataError

logger = logging.getLogger(__name__)

EXIFTOOL = "exiftool"

MEDIA_EXTENSIONS = {
    ".jpg",
    ".jpeg",
    ".png",
    ".heic",
    ".heif",
    ".webp",
    ".mp4",
    ".mov",
    ".avi",
    ".mkv",
    ".m4v",
}

# IMG-20240115-WA0042.jpg
_WHATSAPP_ANDROID = re.compile(r"IMG-(\d{4})(\d{2})(\d{2})-WA")
# WhatsApp Image 2024-01-15 at 10.30.45.jpeg
_WHATSAPP_IOS = re.compile(
    r"WhatsApp.*(\d{4})-(\d{2})-(\d{2})(?:\s+at\s+(\d{2})\.(\d{2})\.(\d{2}))?"
)
# Screenshot 2024-01-15 at 14.30.00.png
_SCREENSHOT_MAC = re.compile(
    r"Screenshot\s+(\d{4})-(\d{2})-(\d{2})\s+at\s+(\d{2})\.(\d{2})\.(\d{2})"
)
# 20240115_143000.jpg, IMG_20240115_143000.jpg
_CAMERA = re.compile(r"(?:IMG_)?(\d{4})(\d{2})(\d{2})_(\d{2})(\d{2})(\d{2})")
_GENERIC_DATE = re.compile(r"(\d{4})[-_]?(\d{2})[-_]?(\d{2})")


@dataclass
class ExifMetadata:
    """EXIF fields read from a single file."""

    file_path: str
    date_time_original: Optional[str] = None
    create_date: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    software: Optional[str] = None
    keywords: List[str] = field(default_factory=list)

    @property
    def camera_model(self) -> Optional[str]:
        """Make and model joined, or whichever one is present."""
        if self.make and self.model:
            return f"{self.make.strip()} {self.model.strip()}"
        return self.model or self.make


@dataclass
class ExtractedDate:
    """Capture date inferred from a filename."""

    date: str  # YYYY-MM-DD
    time: Optional[str]  # HH:MM:SS
    source: str  # "WhatsApp", "Screenshot", "Camera" or "Filename"


@dataclass
class FileMetadataInfo:
    """Date status of one media file."""

    file_path: str
    has_date: bool
    extracted_date: Optional[ExtractedDate]
    camera_model: Optional[str]


def _run_exiftool(args: List[str], exiftool: str) -> str:
    try:
        result = subprocess.run(
            [exiftool, *args],
            capture_output=True,
            text=True,
            timeout=30,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        raise MetadataError(f"Failed to run {exiftool}: {e}") from e

    if result.returncode != 0:
        raise MetadataError(f"{exiftool} failed: {result.stderr.strip()}")
    return result.stdout


def _optional_str(value: object) -> Optional[str]:
    return value if isinstance(value, str) else None


def read_exif_metadata(file_path: str, exiftool: str = EXIFTOOL) -> ExifMetadata:
    """
    Read date, camera and keyword tags from a file.

    Args:
        file_path: Image or video file
        exiftool: exiftool executable

    Returns:
        ExifMetadata for the file

    Raises:
        MetadataError: If exiftool fails or reports nothing
    """
    stdout = _run_exiftool(
        [
            "-json",
            "-DateTimeOriginal",
            "-CreateDate",
            "-Make",
            "-Model",
            "-Software",
            "-Keywords",
            "-XPKeywords",
            file_path,
        ],
        exiftool,
    )

    try:
        parsed = json.loads(stdout)
    except json.JSONDecodeError as e:
        raise MetadataError(f"Failed to parse exiftool output: {e}") from e

    if not isinstance(parsed, list) or not parsed or not isinstance(parsed[0], dict):
        raise MetadataError("No EXIF data found")

    data = parsed[0]

    keywords: List[str] = []
    raw_keywords = data.get("Keywords")
    if isinstance(raw_keywords, list):
        keywords.extend(k for k in raw_keywords if isinstance(k, str))
    elif isinstance(raw_keywords, str):
        keywords.append(raw_keywords)

    xp_keywords = data.get("XPKeywords")
    if isinstance(xp_keywords, str):
        for keyword in xp_keywords.split(";"):
            keyword = keyword.strip()
            if keyword and keyword not in keywords:
                keywords.append(keyword)

    return ExifMetadata(
        file_path=file_path,
        date_time_original=_optional_str(data.get("DateTimeOriginal")),
        create_date=_optional_str(data.get("CreateDate")),
        make=_optional_str(data.get("Make")),
        model=_optional_str(data.get("Model")),
        software=_optional_str(data.get("Software")),
        keywords=keywords,
    )


def get_camera_model(file_path: str, exiftool: str = EXIFTOOL) -> Optional[str]:
    """
    Get a "Make Model" label for a file.

    Unreadable metadata counts as no data: the label is advisory only.
    """
    try:
        return read_exif_metadata(file_path, exiftool).camera_model
    except MetadataError as e:
        logger.debug("No camera model for %s: %s", file_path, e)
        return None


def write_exif_date_if_missing(
    file_path: str,
    date: str,
    time: Optional[str] = None,
    exiftool: str = EXIFTOOL,
) -> str:
    """
    Write DateTimeOriginal and CreateDate, never overwriting an existing date.

    Args:
        file_path: Image or video file
        date: Date as YYYY-MM-DD
        time: Time as HH:MM:SS (default: noon)
        exiftool: exiftool executable

    Returns:
        Status message

    Raises:
        MetadataError: If exiftool fails to write
    """
    try:
        if read_exif_metadata(file_path, exiftool).date_time_original:
            return "Date already exists, skipping"
    except MetadataError as e:
        logger.debug("Could not read existing date of %s: %s", file_path, e)

    datetime_str = f"{date.replace('-', ':')} {time or '12:00:00'}"
    _run_exiftool(
        [
            "-overwrite_original",
            f"-DateTimeOriginal={datetime_str}",
            f"-CreateDate={datetime_str}",
            file_path,
        ],
        exiftool,
    )
    return f"Date written: {datetime_str}"


def write_exif_keywords(
    file_path: str, keywords: List[str], exiftool: str = EXIFTOOL
) -> str:
    """Write keywords to the XPKeywords, Keywords and IPTC:Keywords tags."""
    if not keywords:
        return "No keywords to write"

    xp_keywords = "; ".join(keywords)
    joined = ", ".join(keywords)
    _run_exiftool(
        [
            "-overwrite_original",
            f"-XPKeywords={xp_keywords}",
            f"-Keywords={joined}",
            f"-IPTC:Keywords={joined}",
            file_path,
        ],
        exiftool,
    )
    return f"Keywords written: {xp_keywords}"


def _plausible_date(year: str, month: str, day: str) -> bool:
    return 1990 <= int(year) <= 2100 and 1 <= int(month) <= 12 and 1 <= int(day) <= 31


def extract_date_from_filename(filename: str) -> Optional[ExtractedDate]:
    """
    Infer a capture date from common camera and messenger filename patterns.

    Patterns are tried from most to least specific; a bare date anywhere in
    the name is the last resort.

    Args:
        filename: File name (no directory needed)

    Returns:
        ExtractedDate, or None if no pattern matched
    """
    match = _WHATSAPP_ANDROID.search(filename)
    if match:
        y, m, d = match.groups()
        return ExtractedDate(date=f"{y}-{m}-{d}", time=None, source="WhatsApp")

    match = _WHATSAPP_IOS.search(filename)
    if match:
        y, m, d, hh, mm, ss = match.groups()
        time = f"{hh}:{mm}:{ss}" if hh else None
        return ExtractedDate(date=f"{y}-{m}-{d}", time=time, source="WhatsApp")

    match = _SCREENSHOT_MAC.search(filename)
    if match:
        y, m, d, hh, mm, ss = match.groups()
        return ExtractedDate(
            date=f"{y}-{m}-{d}", time=f"{hh}:{mm}:{ss}", source="Screenshot"
        )

    match = _CAMERA.search(filename)
    if match:
        y, m, d, hh, mm, ss = match.groups()
        if _plausible_date(y, m, d):
            return ExtractedDate(
                date=f"{y}-{m}-{d}", time=f"{hh}:{mm}:{ss}", source="Camera"
            )

    match = _GENERIC_DATE.search(filename)
    if match:
        y, m, d = match.groups()
        if _plausible_date(y, m, d):
            return ExtractedDate(date=f"{y}-{m}-{d}", time=None, source="Filename")

    return None


def scan_missing_dates(
    directory: str, exiftool: str = EXIFTOOL
) -> List[FileMetadataInfo]:
    """
    Report the date status of every media file directly inside a directory.

    Args:
        directory: Directory to inspect (not recursive)
        exiftool: exiftool executable

    Returns:
        One FileMetadataInfo per image or video file, sorted by path

    Raises:
        MetadataError: If the directory cannot be read
    """
    try:
        entries = sorted(Path(directory).iterdir())
    except OSError as e:
        raise MetadataError(f"Failed to read directory: {e}") from e

    results = []
    for entry in entries:
        if not entry.is_file() or entry.suffix.lower() not in MEDIA_EXTENSIONS:
            continue

        try:
            metadata = read_exif_metadata(str(entry), exiftool)
            has_date = metadata.date_time_original is not None
            camera_model = metadata.camera_model
        except MetadataError:
            has_date, camera_model = False, None

        results.append(
            FileMetadataInfo(
                file_path=str(entry),
                has_date=has_date,
                extracted_date=extract_date_from_filename(entry.name),
                camera_model=camera_model,
            )
        )

    return results
