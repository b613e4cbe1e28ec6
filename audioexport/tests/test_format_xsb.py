#!/usr/bin/env python3
"""Test the binary XACT sound bank reader against synthetic banks."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import logging
import struct

import pytest

from clip_events import ClipEventType
from extractor import TrackExtractor, load_sound_bank
from format_xsb import XsbFormat, parse_decibels
from output_generators import build_track_map
from xsb_builder import (
    XsbBuilder, play_wave_event, track_variation_event, effect_variation_event,
    track_effect_variation_event, marker_event, volume_event, raw_event,
)


def sample_bank():
    """One simple sound and one complex sound with two variants."""
    return (XsbBuilder()
            .add_simple_cue("Cue1", {'category': 3, 'wavebank': 0, 'track': 10})
            .add_complex_cue("Cue2", sound={'category': 2, 'clips': [[track_variation_event([(0, 1), (1, 2)])]]})
            .build())


def test_header_and_names():
    bank = XsbFormat().read(sample_bank())

    assert bank.name == "Sound Bank"
    assert bank.wavebank_names == ["Wavebank", "Wavebank(1.4)"]
    assert list(bank.cues) == ["Cue1", "Cue2"]


def test_simple_sound():
    sound = XsbFormat().read(sample_bank()).cues["Cue1"].sounds[0]

    assert not sound.complex_sound
    assert (sound.category_id, sound.wavebank_index, sound.track_index) == (3, 0, 10)
    assert sound.volume == pytest.approx(0.0, abs=0.1)


def test_complex_sound_track_variation():
    sound = XsbFormat().read(sample_bank()).cues["Cue2"].sounds[0]

    assert sound.complex_sound
    assert sound.category_id == 2
    (clip,) = sound.clips
    (event,) = clip.events
    assert event.type == ClipEventType.PLAY_WAVE_TRACK_VARIATION
    assert [(v.wavebank_index, v.track_index) for v in event.get_variants()] == [(0, 1), (1, 2)]


def test_end_to_end_track_map():
    bank = XsbFormat().read(sample_bank())

    output = build_track_map(TrackExtractor(bank).get_tracks())

    assert output == {
        "0000000a": ["Sound", "Cue1"],
        "00000001": ["Music", "Cue2"],
        "00000002": ["Music", "Cue2"],
    }
    assert list(output) == ["00000001", "00000002", "0000000a"]


def test_all_play_wave_event_kinds():
    data = (XsbBuilder()
            .add_complex_cue("Mixed", sound={'category': 4, 'clips': [
                [play_wave_event(0, 3, timestamp_ms=250), effect_variation_event(1, 4)],
                [track_effect_variation_event([(0, 5), (0, 6), (1, 7)])],
            ]})
            .build())

    sound = XsbFormat().read(data).cues["Mixed"].sounds[0]
    first, second = sound.clips

    assert [e.type for e in first.events] == [ClipEventType.PLAY_WAVE, ClipEventType.PLAY_WAVE_EFFECT_VARIATION]
    assert first.events[0].timestamp == pytest.approx(0.25)
    assert first.events[1].metadata['pitch_range'] == (-0.1, 0.1)
    tracks = list(TrackExtractor(XsbFormat().read(data)).get_tracks())
    assert [(t.wavebank_index, t.index) for t in tracks] == [(0, 3), (1, 4), (0, 5), (0, 6), (1, 7)]


def test_non_play_wave_events_are_decoded_and_skipped(caplog):
    data = (XsbBuilder()
            .add_complex_cue("Fx", sound={'category': 3, 'clips': [[
                volume_event(ramp=True), marker_event(12), volume_event(), raw_event(0, b'\0\0'),
                play_wave_event(0, 8),
            ]]})
            .build())

    bank = XsbFormat().read(data)
    events = bank.cues["Fx"].sounds[0].clips[0].events

    assert [e.type for e in events] == [
        ClipEventType.VOLUME, ClipEventType.MARKER, ClipEventType.VOLUME, ClipEventType.STOP, ClipEventType.PLAY_WAVE
    ]
    assert events[0].metadata['duration'] == 500
    assert events[1].metadata['marker'] == 12

    with caplog.at_level(logging.ERROR):
        tracks = list(TrackExtractor(bank).get_tracks())

    assert [t.index for t in tracks] == [8]
    assert caplog.text.count("Unexpected clip event type") == 4


def test_rpc_and_dsp_blocks_are_skipped():
    data = (XsbBuilder()
            .add_simple_cue("Rpc", {'category': 3, 'wavebank': 0, 'track': 1, 'flags': 0x02})
            .add_complex_cue("Dsp", sound={'category': 2, 'flags': 0x12, 'clips': [[play_wave_event(1, 2)]]})
            .build())

    tracks = list(TrackExtractor(XsbFormat().read(data)).get_tracks())

    assert [(t.name, t.wavebank_index, t.index) for t in tracks] == [("Rpc", 0, 1), ("Dsp", 1, 2)]


@pytest.mark.parametrize("table_type", [1, 3])
def test_variation_table_of_sounds(table_type):
    data = (XsbBuilder()
            .add_complex_cue("Steps", table_type=table_type, variations=[
                {'category': 5, 'wavebank': 0, 'track': 20},
                {'category': 5, 'clips': [[play_wave_event(0, 21)]]},
            ])
            .build())

    cue = XsbFormat().read(data).cues["Steps"]

    assert len(cue.sounds) == 2
    tracks = list(TrackExtractor(XsbFormat().read(data)).get_tracks())
    assert [(t.category_id, t.index) for t in tracks] == [(5, 20), (5, 21)]


@pytest.mark.parametrize("table_type", [0, 4])
def test_variation_table_of_waves(table_type):
    data = (XsbBuilder()
            .add_complex_cue("Waves", table_type=table_type, waves=[(0, 30), (1, 31)])
            .build())

    sounds = XsbFormat().read(data).cues["Waves"].sounds

    assert [(s.complex_sound, s.category_id, s.wavebank_index, s.track_index) for s in sounds] == [
        (False, 0, 0, 30), (False, 0, 1, 31)
    ]


def test_bad_magic():
    data = bytearray(sample_bank())
    data[:4] = b'WBND'

    with pytest.raises(ValueError, match="bad magic"):
        XsbFormat().read(bytes(data))
    assert not XsbFormat().detect(bytes(data))


def test_truncated_bank():
    with pytest.raises(ValueError, match="Truncated"):
        XsbFormat().read(sample_bank()[:100])


def test_unsupported_clip_event():
    data = (XsbBuilder()
            .add_complex_cue("Odd", sound={'category': 3, 'clips': [[raw_event(17, b'\0' * 8)]]})
            .build())

    with pytest.raises(ValueError, match="Unsupported clip event id 17"):
        XsbFormat().read(data)


def test_unsupported_variation_table_type():
    data = bytearray(XsbBuilder().add_complex_cue("V", table_type=4, waves=[(0, 1)]).build())
    # Rewrite the variation flags of the only table (type 4 -> type 2)
    table_offset = struct.unpack_from('<I', data, struct.unpack_from('<I', data, 38)[0] + 1)[0]
    struct.pack_into('<H', data, table_offset + 2, 2 << 3)

    with pytest.raises(ValueError, match="Unsupported variation table type 2"):
        XsbFormat().read(bytes(data))


def test_unexpected_format_version_warns(caplog):
    data = XsbBuilder(format_version=46).add_simple_cue("A", {'category': 3, 'wavebank': 0, 'track': 1}).build()

    with caplog.at_level(logging.WARNING):
        bank = XsbFormat().read(data)

    assert list(bank.cues) == ["A"]
    assert "format version 46" in caplog.text


def test_load_sound_bank_detects_xsb(tmp_path):
    path = tmp_path / "Sound Bank.bin"
    path.write_bytes(sample_bank())

    bank = load_sound_bank(str(path))

    assert list(bank.cues) == ["Cue1", "Cue2"]


def test_parse_decibels():
    assert parse_decibels(0x00) == pytest.approx(-96.0)
    assert parse_decibels(0xB4) == pytest.approx(0.0, abs=0.1)
    assert parse_decibels(0xFF) == pytest.approx(6.0, abs=0.2)
