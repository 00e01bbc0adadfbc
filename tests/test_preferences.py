"""Tests for the file-backed widget preferences."""

import json
import random
from datetime import date

import pytest

from preferences import (
    COLORS_FILE, DEFAULT_PALETTES, DEFAULT_TITLE, START_DATE_FILE, TITLE_FILE,
    PreferenceStore, choose_default_palette, parse_iso_date, parse_palette,
)


TODAY = date(2024, 6, 1)


@pytest.fixture
def store(tmp_path):
    return PreferenceStore(tmp_path)


def test_empty_store_uses_defaults(store):
    assert store.read_title() == DEFAULT_TITLE
    assert store.read_start_date(TODAY) == TODAY
    assert store.read_colors() is None


def test_title_is_stripped(store):
    assert store.write_title('  Together  ') == 'Together'
    assert store.read_title() == 'Together'


def test_blank_title_means_default(store, tmp_path):
    assert store.write_title('   ') == DEFAULT_TITLE
    (tmp_path / TITLE_FILE).write_text('  \n', encoding='utf-8')
    assert store.read_title() == DEFAULT_TITLE


def test_start_date_round_trip(store):
    store.write_start_date(date(2021, 2, 14))
    assert store.read_start_date(TODAY) == date(2021, 2, 14)


def test_start_date_accepts_utc_timestamps(store, tmp_path):
    (tmp_path / START_DATE_FILE).write_text('2023-05-20T12:00:00.000Z', encoding='utf-8')
    assert store.read_start_date(TODAY) == date(2023, 5, 20)


def test_invalid_start_date_means_today(store, tmp_path):
    (tmp_path / START_DATE_FILE).write_text('yesterday', encoding='utf-8')
    assert store.read_start_date(TODAY) == TODAY


def test_parse_iso_date_plain_date():
    assert parse_iso_date(' 2020-01-31\n') == date(2020, 1, 31)


def test_palette_round_trip(store):
    store.write_colors(['#8c7373', '#463939', '#ee7b94'])
    assert store.read_colors() == ['#8c7373', '#463939', '#ee7b94']
    assert store.resolve_colors() == ['#8c7373', '#463939', '#ee7b94']


@pytest.mark.parametrize('data', [
    json.dumps('not-an-array'),
    'not-an-array',
    '[]',
    '["#ffffff"]',
    '["#ffffff", "red"]',
    '{"colors": ["#ffffff", "#000000"]}',
])
def test_malformed_palette_is_absent(data):
    assert parse_palette(data) is None


def test_malformed_palette_falls_back_to_default(store, tmp_path):
    (tmp_path / COLORS_FILE).write_text(json.dumps('not-an-array'), encoding='utf-8')
    assert store.read_colors() is None
    for _ in range(10):
        assert tuple(store.resolve_colors()) in DEFAULT_PALETTES


def test_default_palette_choice_covers_all():
    rng = random.Random(5)
    seen = {tuple(choose_default_palette(rng)) for _ in range(100)}
    assert seen == set(DEFAULT_PALETTES)


def test_default_palettes_are_usable():
    for palette in DEFAULT_PALETTES:
        assert 2 <= len(palette) <= 5
        assert parse_palette(json.dumps(list(palette))) == list(palette)


def test_write_failures_are_swallowed(tmp_path):
    blocker = tmp_path / 'not-a-dir'
    blocker.write_text('', encoding='utf-8')
    store = PreferenceStore(blocker)
    store.write_title('Hi')
    store.write_start_date(date(2022, 1, 1))
    store.write_colors(['#000000', '#ffffff'])
    assert store.read_title() == DEFAULT_TITLE
