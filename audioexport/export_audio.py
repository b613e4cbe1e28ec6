#!/usr/bin/env python3
"""
Audio Track Exporter
Loads a game's XACT sound bank and writes a soundbank ID -> [category, cue name]
lookup table matching the filenames produced by unxwb.
"""

import sys
import traceback

from host import GameHost
from mod_entry import ModEntry


def main():
    """Main entry point."""
    # Parse command-line arguments
    overrides = {}
    args = []

    i = 0
    while i < len(sys.argv[1:]):
        arg = sys.argv[1 + i]
        if arg == '--listing':
            overrides['write_listing'] = True
        elif arg in ('--format', '--data-dir') and i + 1 < len(sys.argv[1:]):
            key = 'format' if arg == '--format' else 'data_dir'
            overrides[key] = sys.argv[1 + i + 1]
            i += 1  # Skip next arg
        else:
            args.append(arg)
        i += 1

    if len(args) < 2:
        print("Usage: python export_audio.py <config.yaml> <sound_bank> [options]")
        print()
        print("Arguments:")
        print("  config.yaml             - Export configuration file")
        print("  sound_bank              - XACT sound bank (.xsb) or YAML manifest")
        print()
        print("Options:")
        print("  --format <name>         - Sound bank format: auto, xsb, manifest (default: auto)")
        print("  --data-dir <dir>        - Directory for audio-tracks.json (default: data)")
        print("  --listing               - Also write an audio-tracks.txt listing")
        print()
        print("Examples:")
        print("  python export_audio.py export.yaml 'Content/XACT/Sound Bank.xsb'")
        print("  python export_audio.py export.yaml bank.yaml --format manifest --listing")
        return 1

    config_file = args[0]
    source_file = args[1]

    try:
        host = GameHost(config_file, source_file, overrides=overrides)
        print(f"Loaded sound bank '{host.sound_bank.name}': {len(host.sound_bank)} cues")
        host.load_mod(ModEntry)
        host.launch()
        print(f"Output written to: {host.data_dir}")
    except Exception as e:
        print(f"\nError: {e}")
        print("\nFull traceback:")
        traceback.print_exc()
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
