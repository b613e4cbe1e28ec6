#!/usr/bin/env python3
"""Test grouping, ordering and the soundbank ID table."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from extractor import TrackInfo
from format_base import CategoryMapper
from output_generators import group_tracks, build_track_map, dump_tracks_to_text, name_sort_key

MUSIC = 2
SOUND = 3


def track(category_id, name, index, wavebank_index=0):
    return TrackInfo(wavebank_index=wavebank_index, category_id=category_id, name=name, index=index)


def test_group_order_and_sort_within_group():
    tracks = [track(SOUND, "B", 1), track(MUSIC, "A", 5), track(MUSIC, "A", 2)]

    groups = group_tracks(tracks)

    assert [category for category, _ in groups] == ["Music", "Sound"]
    assert [t.index for t in groups[0][1]] == [2, 5]


def test_sort_by_name_before_index():
    tracks = [track(MUSIC, "b", 1), track(MUSIC, "a", 9), track(MUSIC, "a", 3)]

    (_, group), = group_tracks(tracks)

    assert [(t.name, t.index) for t in group] == [("a", 3), ("a", 9), ("b", 1)]


def test_numeric_category_names_sort_as_strings():
    tracks = [track(MUSIC, "x", 1), track(99, "y", 2), track(10, "z", 3)]

    assert [c for c, _ in group_tracks(tracks)] == ["10", "99", "Music"]


def test_build_track_map_order():
    tracks = [track(SOUND, "B", 1), track(MUSIC, "A", 5), track(MUSIC, "A", 2)]

    output = build_track_map(tracks)

    assert list(output.items()) == [
        ("00000002", ["Music", "A"]),
        ("00000005", ["Music", "A"]),
        ("00000001", ["Sound", "B"]),
    ]


def test_id_collision_across_groups_last_wins():
    """The track processed last in grouped order owns a colliding ID."""
    tracks = [track(SOUND, "Later", 0x10), track(MUSIC, "Earlier", 0x10)]

    output = build_track_map(tracks)

    assert output == {"00000010": ["Sound", "Later"]}


def test_id_collision_within_group_last_wins():
    tracks = [track(MUSIC, "Zed", 7, wavebank_index=1), track(MUSIC, "Abe", 7, wavebank_index=0)]

    assert build_track_map(tracks) == {"00000007": ["Music", "Zed"]}


def test_mapper_changes_group_keys():
    mapper = CategoryMapper(category_names={8: "Voice"})

    output = build_track_map([track(8, "Line1", 1)], mapper)

    assert output == {"00000001": ["Voice", "Line1"]}


def test_empty_input():
    assert build_track_map([]) == {}
    assert group_tracks([]) == []


def test_dump_tracks_to_text():
    tracks = [track(SOUND, "Dig", 0x1f, wavebank_index=1), track(MUSIC, "Spring", 3)]

    text = dump_tracks_to_text(tracks, bank_name="Sound Bank")
    lines = text.split('\n')

    assert lines[0] == "Sound bank: Sound Bank"
    assert lines[1] == "Tracks: 2"
    assert "=== Music (1) ===" in lines
    assert lines.index("=== Music (1) ===") < lines.index("=== Sound (1) ===")
    assert "Wavebank(1.4)" in text and "0000001f  Dig" in text
    assert "00000003  Spring" in text


def test_names_sort_case_insensitively():
    tracks = [track(SOUND, "Cowboy_gunshot", 1), track(SOUND, "axe", 2), track(SOUND, "cowboy_hat", 3)]

    (_, group), = group_tracks(tracks)

    assert [t.name for t in group] == ["axe", "Cowboy_gunshot", "cowboy_hat"]


def test_lowercase_sorts_first_on_case_only_ties():
    assert sorted(["Dog", "dog", "DOG"], key=name_sort_key) == ["dog", "Dog", "DOG"]


def test_mixed_case_id_collision_last_wins():
    """Case-insensitive order decides which cue owns a shared soundbank ID."""
    tracks = [track(SOUND, "axe", 5, wavebank_index=0), track(SOUND, "Cowboy_gunshot", 5, wavebank_index=1)]

    assert build_track_map(tracks) == {"00000005": ["Sound", "Cowboy_gunshot"]}
    assert build_track_map(list(reversed(tracks))) == {"00000005": ["Sound", "Cowboy_gunshot"]}


def test_category_names_sort_case_insensitively():
    mapper = CategoryMapper(category_names={8: "ambience", 9: "Birds"})
    tracks = [track(9, "x", 1), track(8, "y", 2), track(MUSIC, "z", 3)]

    assert [c for c, _ in group_tracks(tracks, mapper)] == ["ambience", "Birds", "Music"]
