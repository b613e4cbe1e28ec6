"""
XACT sound bank (.xsb) format handler.

Reads the little-endian XACT3 sound bank layout loaded by XNA/MonoGame games:

    header          'SDBK' + counts + table offsets + 64-byte bank name
    wavebank names  64 bytes each, NUL padded
    cue names       NUL separated, simple cues first then complex cues
    simple cues     flags u8, sound offset u32
    complex cues    flags u8, sound or variation table offset u32, u32,
                    instance limit u8, fade in u16, fade out u16, instance flags u8
    sounds          flags u8, category u16, volume u8, pitch i16, priority u8,
                    filter u16, then track/wavebank (simple) or clip count (complex)
    clips           volume u8, event table offset u32, filter u16, filter u16
    clip events     info u32 (id in the low 5 bits), random offset u16, payload
"""

import logging
import math
import struct
from typing import List, Tuple

from format_base import SoundBank, SoundBankFormat, CueDefinition, XactSound, XactClip
from clip_events import ClipEvent, ClipEventType, PlayWaveVariant


logger = logging.getLogger(__name__)

XSB_MAGIC = b'SDBK'
XSB_FORMAT_VERSION = 43

HEADER = struct.Struct('<4sHHHIIBHHHHBHHH10I64s')
WAVEBANK_NAME = struct.Struct('<64s')
SIMPLE_CUE = struct.Struct('<BI')
COMPLEX_CUE = struct.Struct('<BIIBHHB')
VARIATION_TABLE = struct.Struct('<HHBHB')
SOUND = struct.Struct('<BHBhBH')
SIMPLE_SOUND_TRACK = struct.Struct('<HB')
CLIP = struct.Struct('<BIHH')
EVENT_HEADER = struct.Struct('<IH')
U8 = struct.Struct('<B')
U16 = struct.Struct('<H')

# Clip event payloads
PLAY_WAVE = struct.Struct('<BBHBBHH')
TRACK_VARIATION = struct.Struct('<BBBHHHB5s')
TRACK_VARIATION_SHORT = struct.Struct('<BBBHH')
TRACK_VARIATION_TAIL = struct.Struct('<HB5s')
EFFECT_VARIATION = struct.Struct('<hhBBffffBB')
VARIANT_ENTRY = struct.Struct('<HBBB')
PARAM_EVENT = struct.Struct('<2sB')
PARAM_RAMP = struct.Struct('<fffH')
PARAM_SET = struct.Struct('<ffBHH')
MARKER_EVENT = struct.Struct('<2sIHH')
STOP_EVENT = struct.Struct('<BB')

# Variation table entries, by table type
VARIATION_ENTRIES = {
    0: struct.Struct('<HBBB'),  # Wave: track, wavebank, weight min/max
    1: struct.Struct('<IBB'),  # Sound: offset, weight min/max
    3: struct.Struct('<IffI'),  # Sound: offset, float weight min/max, flags
    4: struct.Struct('<HB'),  # Compact wave: track, wavebank
}

EVENT_TYPES = {
    0: ClipEventType.STOP,
    1: ClipEventType.PLAY_WAVE,
    3: ClipEventType.PLAY_WAVE_TRACK_VARIATION,
    4: ClipEventType.PLAY_WAVE_EFFECT_VARIATION,
    6: ClipEventType.PLAY_WAVE_TRACK_EFFECT_VARIATION,
    7: ClipEventType.PITCH,
    8: ClipEventType.VOLUME,
    9: ClipEventType.MARKER,
}

SOUND_FLAG_COMPLEX = 0x01
SOUND_FLAG_RPC = 0x0E
SOUND_FLAG_DSP = 0x10
DSP_BLOCK_SIZE = 7
CUE_FLAG_DIRECT_SOUND = 0x04
PARAM_FLAG_RAMP = 0x04


def parse_decibels(value: int) -> float:
    """Convert an XACT volume byte to decibels (0x00 = -96dB, 0xB4 = 0dB, 0xFF = +6dB)."""
    a = -96.0
    b = 0.432254984608615
    c = 80.1748600297963
    d = 67.7385212334047
    return ((a - d) / (1 + math.pow(value / c, b))) + d


def _unpack(fmt: struct.Struct, data: bytes, offset: int) -> Tuple:
    """Unpack a structure, raising ValueError instead of struct.error on short data."""
    if offset < 0 or offset + fmt.size > len(data):
        raise ValueError(f"Truncated sound bank: need {fmt.size} bytes at 0x{offset:X}, "
                         f"file is {len(data)} bytes")
    return fmt.unpack_from(data, offset)


def _decode_name(raw: bytes) -> str:
    return raw.split(b'\0', 1)[0].decode('utf-8', errors='replace')


class XsbFormat(SoundBankFormat):
    """Binary XACT sound bank reader."""

    name = 'xsb'

    def detect(self, data: bytes, path: str = "") -> bool:
        return data[:4] == XSB_MAGIC

    def read(self, data: bytes) -> SoundBank:
        (magic, _tool_version, format_version, _crc, _modified_low, _modified_high, _platform,
         num_simple_cues, num_complex_cues, _unknown, _num_total_cues, num_wavebanks, _num_sounds,
         cue_names_length, _unknown2,
         simple_cues_offset, complex_cues_offset, cue_names_offset, _unknown_offset,
         _variation_tables_offset, _unknown_offset2, wavebank_names_offset,
         _cue_hash_table_offset, _cue_hash_values_offset, _sounds_offset,
         raw_name) = _unpack(HEADER, data, 0)

        if magic != XSB_MAGIC:
            raise ValueError(f"Not an XACT sound bank: bad magic {magic!r}")
        if format_version != XSB_FORMAT_VERSION:
            logger.warning("Sound bank format version %d, expected %d; parsing anyway",
                           format_version, XSB_FORMAT_VERSION)

        bank = SoundBank(name=_decode_name(raw_name))

        # Wavebank name table
        for i in range(num_wavebanks):
            (raw,) = _unpack(WAVEBANK_NAME, data, wavebank_names_offset + i * WAVEBANK_NAME.size)
            bank.wavebank_names.append(_decode_name(raw))

        # Cue name table
        end = cue_names_offset + cue_names_length
        if end > len(data):
            raise ValueError(f"Truncated sound bank: cue name table ends at 0x{end:X}")
        cue_names = data[cue_names_offset:end].decode('utf-8', errors='replace').split('\0')
        if len(cue_names) < num_simple_cues + num_complex_cues:
            raise ValueError(f"Cue name table has {len(cue_names)} names, "
                             f"expected {num_simple_cues + num_complex_cues}")

        # Simple cues: one sound each
        for i in range(num_simple_cues):
            _flags, sound_offset = _unpack(SIMPLE_CUE, data, simple_cues_offset + i * SIMPLE_CUE.size)
            bank.add_cue(CueDefinition(cue_names[i], [self._read_sound(data, sound_offset)]))

        # Complex cues: a direct sound or a variation table of sounds
        for i in range(num_complex_cues):
            entry_offset = complex_cues_offset + i * COMPLEX_CUE.size
            flags, table_offset, _transition_offset, _limit, _fade_in, _fade_out, _instance_flags = \
                _unpack(COMPLEX_CUE, data, entry_offset)

            name = cue_names[num_simple_cues + i]
            if flags & CUE_FLAG_DIRECT_SOUND:
                sounds = [self._read_sound(data, table_offset)]
            else:
                sounds = self._read_variation_table(data, table_offset)
            bank.add_cue(CueDefinition(name, sounds))

        return bank

    def _read_variation_table(self, data: bytes, offset: int) -> List[XactSound]:
        """Read the sounds listed by a complex cue's variation table."""
        num_entries, variation_flags, _unknown, _unknown2, _unknown3 = \
            _unpack(VARIATION_TABLE, data, offset)
        table_type = (variation_flags >> 3) & 0x7
        if table_type not in VARIATION_ENTRIES:
            raise ValueError(f"Unsupported variation table type {table_type} at 0x{offset:X}")

        entry_fmt = VARIATION_ENTRIES[table_type]
        sounds = []
        p = offset + VARIATION_TABLE.size
        for _ in range(num_entries):
            entry = _unpack(entry_fmt, data, p)
            p += entry_fmt.size

            if table_type in (0, 4):
                # Wave entries play a track directly and carry no category
                track_index, wavebank_index = entry[0], entry[1]
                sounds.append(XactSound(complex_sound=False, category_id=0,
                                        wavebank_index=wavebank_index, track_index=track_index))
            else:
                sounds.append(self._read_sound(data, entry[0]))

        return sounds

    def _read_sound(self, data: bytes, offset: int) -> XactSound:
        """Read a sound definition and, for complex sounds, its clips."""
        flags, category_id, volume, pitch, priority, _filter = _unpack(SOUND, data, offset)
        p = offset + SOUND.size

        sound = XactSound(
            complex_sound=bool(flags & SOUND_FLAG_COMPLEX),
            category_id=category_id,
            volume=parse_decibels(volume),
            pitch=pitch / 1000.0,
            priority=priority
        )

        num_clips = 0
        if sound.complex_sound:
            num_clips = _unpack(U8, data, p)[0]
            p += 1
        else:
            sound.track_index, sound.wavebank_index = _unpack(SIMPLE_SOUND_TRACK, data, p)
            p += SIMPLE_SOUND_TRACK.size

        if flags & SOUND_FLAG_RPC:
            # Length includes its own two bytes
            (rpc_length,) = _unpack(U16, data, p)
            p += rpc_length

        if flags & SOUND_FLAG_DSP:
            p += DSP_BLOCK_SIZE

        if sound.complex_sound:
            sound.clips = []
            for _ in range(num_clips):
                clip_volume, events_offset, _filter_q, _filter_freq = _unpack(CLIP, data, p)
                p += CLIP.size
                clip = XactClip(volume=parse_decibels(clip_volume))
                clip.events = self._read_clip_events(data, events_offset)
                sound.clips.append(clip)

        return sound

    def _read_clip_events(self, data: bytes, offset: int) -> List[ClipEvent]:
        """Read a clip's event table."""
        num_events = _unpack(U8, data, offset)[0]
        p = offset + 1
        events = []
        for _ in range(num_events):
            event_info, random_offset = _unpack(EVENT_HEADER, data, p)
            event_id = event_info & 0x1F
            if event_id not in EVENT_TYPES:
                raise ValueError(f"Unsupported clip event id {event_id} at 0x{p:X}")
            p += EVENT_HEADER.size

            event = ClipEvent(
                type=EVENT_TYPES[event_id],
                timestamp=((event_info >> 5) & 0xFFFF) * 0.001,
                random_offset=random_offset * 0.001
            )
            p = self._read_event_payload(data, p, event)
            events.append(event)

        return events

    def _read_event_payload(self, data: bytes, p: int, event: ClipEvent) -> int:
        """Decode one event payload into the event. Returns the offset after it."""
        if event.type == ClipEventType.PLAY_WAVE:
            _unknown, _flags, track, wavebank, loop_count, _pan_angle, _pan_arc = \
                _unpack(PLAY_WAVE, data, p)
            event.variants.append(PlayWaveVariant(wavebank, track))
            event.loop_count = loop_count
            return p + PLAY_WAVE.size

        if event.type == ClipEventType.PLAY_WAVE_TRACK_VARIATION:
            _unknown, _flags, loop_count, _pan_angle, _pan_arc, num_tracks, more_flags, _reserved = \
                _unpack(TRACK_VARIATION, data, p)
            event.loop_count = loop_count
            event.metadata['variation_type'] = more_flags & 0x0F
            return self._read_variants(data, p + TRACK_VARIATION.size, num_tracks, event)

        if event.type == ClipEventType.PLAY_WAVE_EFFECT_VARIATION:
            _unknown, _flags, track, wavebank, loop_count, _pan_angle, _pan_arc = \
                _unpack(PLAY_WAVE, data, p)
            event.variants.append(PlayWaveVariant(wavebank, track))
            event.loop_count = loop_count
            p += PLAY_WAVE.size
            self._read_effect_variation(data, p, event)
            return p + EFFECT_VARIATION.size

        if event.type == ClipEventType.PLAY_WAVE_TRACK_EFFECT_VARIATION:
            _unknown, _flags, loop_count, _pan_angle, _pan_arc = _unpack(TRACK_VARIATION_SHORT, data, p)
            event.loop_count = loop_count
            p += TRACK_VARIATION_SHORT.size
            self._read_effect_variation(data, p, event)
            p += EFFECT_VARIATION.size
            num_tracks, more_flags, _reserved = _unpack(TRACK_VARIATION_TAIL, data, p)
            event.metadata['variation_type'] = more_flags & 0x0F
            return self._read_variants(data, p + TRACK_VARIATION_TAIL.size, num_tracks, event)

        if event.type in (ClipEventType.PITCH, ClipEventType.VOLUME):
            _unknown, flags = _unpack(PARAM_EVENT, data, p)
            p += PARAM_EVENT.size
            if flags & PARAM_FLAG_RAMP:
                initial, slope, slope_delta, duration = _unpack(PARAM_RAMP, data, p)
                event.metadata.update(ramp=True, initial=initial, slope=slope,
                                      slope_delta=slope_delta, duration=duration)
                return p + PARAM_RAMP.size
            value_min, value_max, _unknown, repeats, frequency = _unpack(PARAM_SET, data, p)
            event.metadata.update(ramp=False, value_min=value_min, value_max=value_max,
                                  repeats=repeats, frequency=frequency)
            return p + PARAM_SET.size

        if event.type == ClipEventType.MARKER:
            _unknown, marker, repeats, frequency = _unpack(MARKER_EVENT, data, p)
            event.metadata.update(marker=marker, repeats=repeats, frequency=frequency)
            return p + MARKER_EVENT.size

        # Stop
        _unknown, flags = _unpack(STOP_EVENT, data, p)
        event.metadata['flags'] = flags
        return p + STOP_EVENT.size

    def _read_effect_variation(self, data: bytes, p: int, event: ClipEvent):
        min_pitch, max_pitch, min_volume, max_volume, _min_freq, _max_freq, _min_q, _max_q, \
            _unknown, variation_flags = _unpack(EFFECT_VARIATION, data, p)
        event.metadata.update(
            pitch_range=(min_pitch / 1000.0, max_pitch / 1000.0),
            volume_range=(parse_decibels(min_volume), parse_decibels(max_volume)),
            effect_flags=variation_flags
        )

    def _read_variants(self, data: bytes, p: int, count: int, event: ClipEvent) -> int:
        for _ in range(count):
            track, wavebank, weight_min, weight_max = _unpack(VARIANT_ENTRY, data, p)
            event.variants.append(PlayWaveVariant(wavebank, track, weight_min, weight_max))
            p += VARIANT_ENTRY.size
        return p
