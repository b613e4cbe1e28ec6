"""
Audio track export mod.
Writes the soundbank ID -> [category, cue name] table once the game has launched.
"""

from host import Mod, ModHelper, GameLaunchedEventArgs
from extractor import TrackExtractor
from output_generators import build_track_map, dump_tracks_to_text


OUTPUT_FILE = 'audio-tracks.json'
LISTING_FILE = 'audio-tracks.txt'


class ModEntry(Mod):
    """The main entry point for the mod."""

    def entry(self, helper: ModHelper):
        helper.events.game_loop.game_launched.subscribe(self.on_game_launched)

    def on_game_launched(self, args: GameLaunchedEventArgs):
        """Export the track table after the audio subsystem has loaded."""
        config = self.helper.config
        output_file = config.get('output_file', OUTPUT_FILE)

        tracks = list(TrackExtractor(self.helper.sound_bank, self.monitor).get_tracks())
        output = build_track_map(tracks, self.helper.mapper)

        self.helper.data.write_json_file(output_file, output)
        self.monitor.info("Wrote %d entries to %s.", len(output), output_file)

        if config.get('write_listing', False):
            listing = dump_tracks_to_text(tracks, self.helper.sound_bank.name, self.helper.mapper)
            self.helper.data.write_text_file(LISTING_FILE, listing)
            self.monitor.info("Wrote %d tracks to %s.", len(tracks), LISTING_FILE)
