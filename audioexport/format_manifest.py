"""
YAML sound bank manifest handler.

A manifest describes the same object graph as a binary sound bank, for hosts
that expose their audio data as plain data instead of an .xsb file:

    name: Sound Bank
    wavebanks: [Wavebank, Wavebank(1.4)]
    cues:
      - name: Cue1
        sounds:
          - {category: 3, wavebank: 0, track: 10}
      - name: Cue2
        sounds:
          - category: 2
            clips:
              - events:
                  - type: play_wave_track_variation
                    variants:
                      - {wavebank: 0, track: 1}
                      - {wavebank: 1, track: 2}

A sound with a 'clips' key is complex; anything else is simple.
"""

import yaml
from pathlib import Path
from typing import Dict, List

from format_base import SoundBank, SoundBankFormat, CueDefinition, XactSound, XactClip
from clip_events import ClipEvent, ClipEventType, PlayWaveVariant


MANIFEST_EXTENSIONS = ('.yaml', '.yml')


def _require(entry: Dict, key: str, context: str):
    if not isinstance(entry, dict) or key not in entry:
        raise ValueError(f"{context}: missing required field '{key}'")
    return entry[key]


def _require_index(entry: Dict, key: str, context: str) -> int:
    value = int(_require(entry, key, context))
    if value < 0:
        raise ValueError(f"{context}: field '{key}' must not be negative, got {value}")
    return value


class ManifestFormat(SoundBankFormat):
    """YAML manifest reader."""

    name = 'manifest'

    def detect(self, data: bytes, path: str = "") -> bool:
        return Path(path).suffix.lower() in MANIFEST_EXTENSIONS

    def read(self, data: bytes) -> SoundBank:
        try:
            manifest = yaml.safe_load(data.decode('utf-8')) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid sound bank manifest: {e}")

        if not isinstance(manifest, dict):
            raise ValueError("Sound bank manifest must be a mapping")

        bank = SoundBank(
            name=str(manifest.get('name', '')),
            wavebank_names=[str(n) for n in manifest.get('wavebanks', [])]
        )
        for i, cue_entry in enumerate(manifest.get('cues', [])):
            name = str(_require(cue_entry, 'name', f"cue #{i}"))
            sounds = [self._read_sound(s, f"cue '{name}'") for s in cue_entry.get('sounds', [])]
            bank.add_cue(CueDefinition(name, sounds))

        return bank

    def _read_sound(self, entry: Dict, context: str) -> XactSound:
        category_id = _require_index(entry, 'category', context)

        if 'clips' not in entry:
            return XactSound(
                complex_sound=False,
                category_id=category_id,
                wavebank_index=_require_index(entry, 'wavebank', context),
                track_index=_require_index(entry, 'track', context),
                volume=float(entry.get('volume', 0.0)),
                pitch=float(entry.get('pitch', 0.0)),
                priority=int(entry.get('priority', 0))
            )

        clips = []
        for clip_entry in entry['clips'] or []:
            events = [self._read_event(e, context) for e in (clip_entry or {}).get('events', [])]
            clips.append(XactClip(events=events, volume=float((clip_entry or {}).get('volume', 0.0))))

        return XactSound(
            complex_sound=True,
            category_id=category_id,
            clips=clips,
            volume=float(entry.get('volume', 0.0)),
            pitch=float(entry.get('pitch', 0.0)),
            priority=int(entry.get('priority', 0))
        )

    def _read_event(self, entry: Dict, context: str) -> ClipEvent:
        type_name = _require(entry, 'type', context)
        try:
            event_type = ClipEventType(type_name)
        except ValueError:
            raise ValueError(f"{context}: unknown clip event type '{type_name}'")

        variants: List[PlayWaveVariant] = []
        for variant in entry.get('variants', []):
            variants.append(PlayWaveVariant(
                wavebank_index=_require_index(variant, 'wavebank', context),
                track_index=_require_index(variant, 'track', context),
                weight_min=int(variant.get('weight_min', 0)),
                weight_max=int(variant.get('weight_max', 255))
            ))

        metadata = {k: v for k, v in entry.items() if k not in ('type', 'variants', 'timestamp', 'loop_count')}
        return ClipEvent(
            type=event_type,
            timestamp=float(entry.get('timestamp', 0.0)),
            variants=variants,
            loop_count=entry.get('loop_count'),
            metadata=metadata
        )
