"""
Base classes and shared utilities for sound bank format handlers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Dict, Optional

# Import clip event classes
from clip_events import ClipEvent


# Global constants
CATEGORY_NAMES = {
    2: "Music",
    3: "Sound",
    4: "Music (ambient)",
    5: "Footsteps",
}

WAVEBANK_NAMES = {
    0: "Wavebank",
    1: "Wavebank(1.4)",
}


class CategoryMapper:
    """Maps numeric category IDs and wavebank indexes to human-readable names."""

    def __init__(self, category_names: Optional[Dict] = None, wavebank_names: Optional[Dict] = None,
                 bank_wavebank_names: Optional[List[str]] = None):
        """Initialize with optional name overrides from configuration.

        Args:
            category_names: Config overrides, category ID -> name
            wavebank_names: Config overrides, wavebank index -> name
            bank_wavebank_names: Wavebank names stored in the sound bank itself,
                by index. They replace the defaults; config overrides still win.
        """
        self.category_names: Dict[int, str] = dict(CATEGORY_NAMES)
        self.wavebank_names: Dict[int, str] = dict(WAVEBANK_NAMES)

        for wavebank_index, name in enumerate(bank_wavebank_names or []):
            if name:
                self.wavebank_names[wavebank_index] = name

        # YAML keys may come through as strings ("2: Music" vs "'2': Music")
        for category_id, name in (category_names or {}).items():
            self.category_names[int(category_id)] = str(name)
        for wavebank_index, name in (wavebank_names or {}).items():
            self.wavebank_names[int(wavebank_index)] = str(name)

    def get_category_name(self, category_id: int) -> str:
        """Get the category name, falling back to the numeric ID."""
        return self.category_names.get(category_id, str(category_id))

    def get_wavebank_name(self, wavebank_index: int) -> str:
        """Get the wavebank name, falling back to the numeric index."""
        return self.wavebank_names.get(wavebank_index, str(wavebank_index))


DEFAULT_MAPPER = CategoryMapper()


@dataclass
class XactClip:
    """A clip of a complex sound."""
    events: List[ClipEvent] = field(default_factory=list)
    volume: float = 0.0  # Decibels


@dataclass
class XactSound:
    """A sound inside a cue.

    Simple sounds point straight at a wavebank track. Complex sounds leave
    wavebank_index/track_index unset and play their clips instead.
    """
    complex_sound: bool
    category_id: int
    wavebank_index: Optional[int] = None
    track_index: Optional[int] = None
    clips: Optional[List[XactClip]] = None
    volume: float = 0.0  # Decibels
    pitch: float = 0.0  # Semitones
    priority: int = 0


@dataclass
class CueDefinition:
    """A named playable cue made of one or more sounds."""
    name: str
    sounds: List[XactSound] = field(default_factory=list)


@dataclass
class SoundBank:
    """A loaded sound bank: its cue definitions, keyed by cue name."""
    name: str = ""
    wavebank_names: List[str] = field(default_factory=list)
    cues: Dict[str, CueDefinition] = field(default_factory=dict)

    def add_cue(self, cue: CueDefinition):
        """Add a cue, replacing any earlier cue with the same name."""
        self.cues[cue.name] = cue

    def __len__(self) -> int:
        """Return number of cues in this bank."""
        return len(self.cues)


class SoundBankFormat(ABC):
    """Abstract base class for sound bank format handlers."""

    name: str = ""

    @abstractmethod
    def detect(self, data: bytes, path: str = "") -> bool:
        """Check whether this handler can read the given source.

        Args:
            data: Raw file contents
            path: Source path (used for extension-based detection)
        """
        pass

    @abstractmethod
    def read(self, data: bytes) -> SoundBank:
        """Parse raw file contents into a SoundBank.

        Raises:
            ValueError: if the data does not match the expected layout
        """
        pass
