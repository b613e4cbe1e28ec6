"""
Host runtime for audio export mods.
Loads configuration and the sound bank, wires up mod helpers, and fires the
game lifecycle events.
"""

import json
import logging
import os
import yaml
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from format_base import CategoryMapper, SoundBank
from extractor import load_sound_bank


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class Event:
    """An ordered list of handlers invoked when the event is raised."""

    def __init__(self, name: str, once: bool = False):
        self.name = name
        self.once = once
        self.raised = False
        self._handlers: List[Callable] = []

    def subscribe(self, handler: Callable):
        self._handlers.append(handler)

    def unsubscribe(self, handler: Callable):
        self._handlers.remove(handler)

    def raise_event(self, args: Any = None):
        """Invoke every handler in subscription order.

        Handler exceptions are not caught; a failing handler stops the event.
        """
        if self.once and self.raised:
            raise RuntimeError(f"Event '{self.name}' can only be raised once")
        self.raised = True
        for handler in list(self._handlers):
            handler(args)

    def __len__(self) -> int:
        return len(self._handlers)


@dataclass(frozen=True)
class GameLaunchedEventArgs:
    """Payload of the game launched event."""
    sound_bank_name: str = ""


class GameLoopEvents:
    """Game loop lifecycle events."""

    def __init__(self):
        # Fired once, after all core systems (including audio) have loaded
        self.game_launched = Event('GameLoop.GameLaunched', once=True)


class ModEvents:
    """All events available to mods."""

    def __init__(self):
        self.game_loop = GameLoopEvents()


class DataHelper:
    """Reads and writes files in a mod's private data directory."""

    def __init__(self, data_dir: str):
        self.data_dir = Path(data_dir)

    def _resolve(self, relative_path: str) -> Path:
        if os.path.isabs(relative_path):
            raise ValueError(f"Data path must be relative: {relative_path}")
        root = self.data_dir.resolve()
        path = (root / relative_path).resolve()
        if root != path and root not in path.parents:
            raise ValueError(f"Data path escapes the data directory: {relative_path}")
        return path

    def read_json_file(self, relative_path: str) -> Optional[Any]:
        """Read a JSON file, or None if it does not exist."""
        path = self._resolve(relative_path)
        if not path.exists():
            return None
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def write_json_file(self, relative_path: str, data: Any) -> Path:
        """Write data as indented JSON, creating directories as needed."""
        path = self._resolve(relative_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        return path

    def write_text_file(self, relative_path: str, text: str) -> Path:
        path = self._resolve(relative_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding='utf-8')
        return path


@dataclass
class ModHelper:
    """Everything the host provides to a mod."""
    events: ModEvents
    data: DataHelper
    sound_bank: SoundBank
    config: Dict
    mapper: CategoryMapper


class Mod(ABC):
    """Base class for mods loaded by the host."""

    def __init__(self, helper: ModHelper, monitor: logging.Logger):
        self.helper = helper
        self.monitor = monitor

    @abstractmethod
    def entry(self, helper: ModHelper):
        """Mod entry point, called once after the mod is loaded."""
        pass


def get_monitor(name: str, level: str = 'INFO', log_file: Optional[str] = None) -> logging.Logger:
    """Get a mod's logger, installing handlers the first time."""
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT)
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    return logger


class GameHost:
    """Hosts mods against a loaded sound bank."""

    def __init__(self, config_path: Optional[str], source_file: str, overrides: Optional[Dict] = None):
        """Initialize with YAML config file and sound bank source file.

        Args:
            config_path: YAML config, or None to use defaults
            source_file: Sound bank file (.xsb or YAML manifest)
            overrides: Config values that take precedence over the file (CLI flags)
        """
        self.config: Dict = {}
        if config_path:
            with open(config_path, 'r') as f:
                self.config = yaml.safe_load(f) or {}
            if not isinstance(self.config, dict):
                raise ValueError("Config must be a mapping")
        self.config.update({k: v for k, v in (overrides or {}).items() if v is not None})

        self.source_file = source_file
        self.data_dir = Path(self.config.get('data_dir', 'data'))
        self.sound_bank = load_sound_bank(source_file, self.config.get('format', 'auto'))
        self.mapper = CategoryMapper(
            self.config.get('category_names'),
            self.config.get('wavebank_names'),
            bank_wavebank_names=self.sound_bank.wavebank_names
        )
        self.events = ModEvents()
        self.mods: List[Mod] = []

    def load_mod(self, mod_class) -> Mod:
        """Instantiate a mod and call its entry point."""
        monitor = get_monitor(
            mod_class.__name__,
            self.config.get('log_level', 'INFO'),
            self.config.get('log_file')
        )
        helper = ModHelper(
            events=self.events,
            data=DataHelper(str(self.data_dir)),
            sound_bank=self.sound_bank,
            config=self.config,
            mapper=self.mapper
        )
        mod = mod_class(helper, monitor)
        mod.entry(helper)
        self.mods.append(mod)
        return mod

    def launch(self):
        """Fire the one-shot game launched event."""
        self.events.game_loop.game_launched.raise_event(
            GameLaunchedEventArgs(sound_bank_name=self.sound_bank.name)
        )
