#!/usr/bin/env python3
"""
File-backed widget preferences: title, start date and background palette.

Reads never raise. Missing, unreadable or malformed entries fall back to
defaults; write failures are logged and swallowed so a render never aborts
because the documents directory is read-only.
"""

import json
import logging
import random
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from colorspace import is_hex_color


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_TITLE = "计时第"

TITLE_FILE = "widget-title.txt"
START_DATE_FILE = "widget-start-date.txt"
COLORS_FILE = "widget-colors.json"

DEFAULT_PALETTES = (
    ("#EE7B94", "#7BC2EE"),
    ("#FFFDF8", "#F5FAFF", "#0047FF", "#00AFFF"),
    ("#5FE387", "#00A0FC", "#AE6DD7", "#FF6892", "#E3C95F"),
)

MIN_STORED_COLORS = 2


def default_documents_dir() -> Path:
    return Path.home() / "Documents"


def choose_default_palette(rng: Optional[random.Random] = None) -> list:
    """Pick one of DEFAULT_PALETTES uniformly at random."""
    rng = rng or random
    return list(rng.choice(DEFAULT_PALETTES))


def parse_iso_date(value: str) -> date:
    """
    Parse an ISO-8601 date or datetime into a local calendar date.

    Timezone-aware values (including a trailing 'Z') are converted to local
    time first, so the day matches what the user picked.

    Raises:
        ValueError: If value is not ISO-8601
    """
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed.date()


def parse_palette(data: str) -> Optional[list]:
    """
    Parse a stored palette.

    Returns:
        List of '#rrggbb' strings, or None if the JSON is invalid, not an
        array, too short, or contains anything but hex colors.
    """
    try:
        colors = json.loads(data)
    except json.JSONDecodeError:
        return None

    if not isinstance(colors, list) or len(colors) < MIN_STORED_COLORS:
        return None
    if not all(is_hex_color(c) for c in colors):
        return None
    return colors


class PreferenceStore:
    """Widget preferences stored as small files in a documents directory."""

    def __init__(self, documents_dir: Optional[Path] = None):
        self.documents_dir = Path(documents_dir) if documents_dir else default_documents_dir()

    def _path(self, name: str) -> Path:
        return self.documents_dir / name

    def _read(self, name: str) -> Optional[str]:
        path = self._path(name)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read %s: %s", path, e)
            return None

    def _write(self, name: str, text: str) -> bool:
        path = self._path(name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            logger.warning("Could not save %s: %s", path, e)
            return False
        return True

    # Title

    def read_title(self) -> str:
        title = self._read(TITLE_FILE)
        if title and title.strip():
            return title.strip()
        return DEFAULT_TITLE

    def write_title(self, title: str) -> str:
        """Save a title; blank titles are replaced by DEFAULT_TITLE."""
        title = title.strip() or DEFAULT_TITLE
        self._write(TITLE_FILE, title)
        return title

    # Start date

    def read_start_date(self, today: Optional[date] = None) -> date:
        """Stored start date, or today if missing or invalid."""
        today = today or date.today()
        raw = self._read(START_DATE_FILE)
        if raw is None:
            return today
        try:
            return parse_iso_date(raw)
        except ValueError:
            logger.warning("Invalid stored start date %r, using today", raw)
            return today

    def write_start_date(self, start: date) -> None:
        self._write(START_DATE_FILE, start.isoformat())

    # Palette

    def read_colors(self) -> Optional[list]:
        """Stored palette, or None if absent or malformed."""
        raw = self._read(COLORS_FILE)
        if raw is None:
            return None
        colors = parse_palette(raw)
        if colors is None:
            logger.warning("Ignoring malformed stored palette: %r", raw[:80])
        return colors

    def write_colors(self, colors: list) -> None:
        self._write(COLORS_FILE, json.dumps(list(colors)))

    def resolve_colors(self, rng: Optional[random.Random] = None) -> list:
        """Stored palette if valid, otherwise a random default palette."""
        colors = self.read_colors()
        if colors is None:
            colors = choose_default_palette(rng)
        return colors
