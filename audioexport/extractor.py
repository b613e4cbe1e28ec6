"""
Track extraction.
Handles sound bank loading, format detection, and walking cue definitions
down to individual wavebank tracks.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional

# Import base classes
from format_base import CategoryMapper, DEFAULT_MAPPER, SoundBank, SoundBankFormat

# Import format handlers
from format_xsb import XsbFormat
from format_manifest import ManifestFormat


FORMAT_HANDLERS: List[SoundBankFormat] = [XsbFormat(), ManifestFormat()]


@dataclass(frozen=True)
class TrackInfo:
    """A sound or music track in a wavebank."""
    wavebank_index: int  # The wavebank which contains the track
    category_id: int  # The sound or music category
    name: str  # The cue name used in the game code
    index: int  # The offset index in the raw wavebank

    def get_category_name(self, mapper: Optional[CategoryMapper] = None) -> str:
        """Get a human-readable name for the category ID."""
        return (mapper or DEFAULT_MAPPER).get_category_name(self.category_id)

    def get_wavebank_name(self, mapper: Optional[CategoryMapper] = None) -> str:
        """Get a human-readable name for the wavebank index."""
        return (mapper or DEFAULT_MAPPER).get_wavebank_name(self.wavebank_index)

    def get_soundbank_id(self) -> str:
        """Get the hexadecimal soundbank ID which matches the filenames exported by unxwb."""
        return f"{self.index:08x}"


class TrackExtractor:
    """Walks a loaded sound bank and yields every playable track."""

    def __init__(self, sound_bank: SoundBank, monitor: Optional[logging.Logger] = None):
        self.sound_bank = sound_bank
        self.monitor = monitor or logging.getLogger(__name__)

    def get_tracks(self) -> Iterator[TrackInfo]:
        """Extract the music/sound tracks from the sound bank."""
        for cue in self.sound_bank.cues.values():
            for sound in cue.sounds:
                # simple sound
                if not sound.complex_sound:
                    yield TrackInfo(
                        wavebank_index=sound.wavebank_index,
                        category_id=sound.category_id,
                        name=cue.name,
                        index=sound.track_index
                    )
                    continue

                # complex sound
                has_variants = False
                for clip in sound.clips or []:
                    for event in clip.events:
                        if not event.is_play_wave():
                            self.monitor.error("Unexpected clip event type '%s'.", event.type.value)
                            continue

                        for variant in event.get_variants():
                            has_variants = True
                            yield TrackInfo(
                                wavebank_index=variant.wavebank_index,
                                category_id=sound.category_id,
                                name=cue.name,
                                index=variant.track_index
                            )

                if not has_variants:
                    self.monitor.error("Complex sound '%s' unexpectedly has no variants.", cue.name)


def detect_format(data: bytes, path: str = "") -> SoundBankFormat:
    """Pick the format handler for a sound bank source."""
    for handler in FORMAT_HANDLERS:
        if handler.detect(data, path):
            return handler
    raise ValueError(f"Could not detect sound bank format for {path or 'input'}")


def load_sound_bank(path: str, format_name: str = 'auto') -> SoundBank:
    """Load a sound bank file with the named format handler, or detect it."""
    with open(path, 'rb') as f:
        data = f.read()

    if format_name == 'auto':
        handler = detect_format(data, path)
    else:
        matches = [h for h in FORMAT_HANDLERS if h.name == format_name]
        if not matches:
            raise ValueError(f"Unknown format: {format_name}")
        handler = matches[0]

    bank = handler.read(data)
    if not bank.name:
        bank.name = Path(path).stem
    return bank
