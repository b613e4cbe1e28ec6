#!/usr/bin/env python3
"""
Clip events for complex XACT sounds.
A complex sound is made of clips, and each clip holds an ordered list of
events. Only the play-wave family of events references wavebank tracks.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any
from enum import Enum


class ClipEventType(Enum):
    """Types of clip events."""
    STOP = "stop"
    PLAY_WAVE = "play_wave"
    PLAY_WAVE_TRACK_VARIATION = "play_wave_track_variation"
    PLAY_WAVE_EFFECT_VARIATION = "play_wave_effect_variation"
    PLAY_WAVE_TRACK_EFFECT_VARIATION = "play_wave_track_effect_variation"
    PITCH = "pitch"
    VOLUME = "volume"
    MARKER = "marker"


PLAY_WAVE_EVENT_TYPES = (
    ClipEventType.PLAY_WAVE,
    ClipEventType.PLAY_WAVE_TRACK_VARIATION,
    ClipEventType.PLAY_WAVE_EFFECT_VARIATION,
    ClipEventType.PLAY_WAVE_TRACK_EFFECT_VARIATION,
)


@dataclass(frozen=True)
class PlayWaveVariant:
    """One playable alternative of a play-wave event."""
    wavebank_index: int
    track_index: int
    weight_min: int = 0
    weight_max: int = 255


@dataclass
class ClipEvent:
    """A single event inside a clip.

    Play-wave events carry one variant per track they can play. Other event
    types (pitch, volume, marker, stop) keep their decoded fields in metadata.
    """
    type: ClipEventType
    timestamp: float = 0.0  # Seconds from clip start
    random_offset: float = 0.0  # Seconds
    variants: List[PlayWaveVariant] = field(default_factory=list)
    loop_count: Optional[int] = None

    # Additional decoded fields, keyed by name
    metadata: Dict[str, Any] = field(default_factory=dict)

    def is_play_wave(self) -> bool:
        """Check if this event plays audio from a wavebank."""
        return self.type in PLAY_WAVE_EVENT_TYPES

    def get_variants(self) -> List[PlayWaveVariant]:
        """Get the playable variants of a play-wave event."""
        if not self.is_play_wave():
            raise ValueError(f"Clip event '{self.type.value}' has no variants")
        return list(self.variants)


# Helper functions for creating common event types

def make_play_wave(wavebank_index: int, track_index: int, timestamp: float = 0.0,
                   loop_count: int = 0) -> ClipEvent:
    """Create a play-wave event for a single track."""
    return ClipEvent(
        type=ClipEventType.PLAY_WAVE,
        timestamp=timestamp,
        variants=[PlayWaveVariant(wavebank_index, track_index)],
        loop_count=loop_count
    )


def make_play_wave_variation(variants: List[PlayWaveVariant], timestamp: float = 0.0,
                             event_type: ClipEventType = ClipEventType.PLAY_WAVE_TRACK_VARIATION,
                             loop_count: int = 0) -> ClipEvent:
    """Create a play-wave event with a track variation playlist.

    Args:
        variants: Playlist entries, in file order
        timestamp: Event start in seconds
        event_type: One of the play-wave event types
        loop_count: Loop count shared by all variants
    """
    if event_type not in PLAY_WAVE_EVENT_TYPES:
        raise ValueError(f"Not a play-wave event type: {event_type.value}")
    return ClipEvent(
        type=event_type,
        timestamp=timestamp,
        variants=list(variants),
        loop_count=loop_count
    )


def make_marker(marker: int, timestamp: float = 0.0) -> ClipEvent:
    """Create a marker event."""
    return ClipEvent(
        type=ClipEventType.MARKER,
        timestamp=timestamp,
        metadata={'marker': marker}
    )


def make_stop(timestamp: float = 0.0) -> ClipEvent:
    """Create a stop event."""
    return ClipEvent(type=ClipEventType.STOP, timestamp=timestamp)
