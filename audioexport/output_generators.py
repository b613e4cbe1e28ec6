"""
Output generators for extracted tracks.
Builds the soundbank ID lookup table and the plain-text track listing.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from format_base import CategoryMapper, DEFAULT_MAPPER
from extractor import TrackInfo


def name_sort_key(name: str) -> Tuple[str, str]:
    """Sort key that orders names case-insensitively, lowercase first on ties.

    Matches culture-aware ordering ("axe" < "Cowboy_gunshot" < "cowboy_hat"),
    which decides the winner when two tracks share a soundbank ID.
    """
    return (name.casefold(), name.swapcase())


def group_tracks(tracks: Iterable[TrackInfo],
                 mapper: Optional[CategoryMapper] = None) -> List[Tuple[str, List[TrackInfo]]]:
    """Group tracks by category name.

    Groups are ordered by category name; tracks within a group by cue name,
    then by track index. Names compare with name_sort_key; ties keep
    extraction order.

    Returns:
        List of (category_name, tracks) pairs
    """
    mapper = mapper or DEFAULT_MAPPER
    groups: Dict[str, List[TrackInfo]] = {}
    for track in tracks:
        groups.setdefault(track.get_category_name(mapper), []).append(track)

    return [
        (category, sorted(groups[category], key=lambda t: (name_sort_key(t.name), t.index)))
        for category in sorted(groups, key=name_sort_key)
    ]


def build_track_map(tracks: Iterable[TrackInfo],
                    mapper: Optional[CategoryMapper] = None) -> Dict[str, List[str]]:
    """Build the soundbank ID -> [category name, cue name] table.

    Tracks sharing a soundbank ID overwrite each other; the last one in
    grouped order wins.
    """
    output: Dict[str, List[str]] = {}
    for category, group in group_tracks(tracks, mapper):
        for track in group:
            output[track.get_soundbank_id()] = [category, track.name]
    return output


def dump_tracks_to_text(tracks: Iterable[TrackInfo], bank_name: str = "",
                        mapper: Optional[CategoryMapper] = None) -> str:
    """Generate a human-readable track listing.

    Args:
        tracks: Extracted tracks
        bank_name: Sound bank name for the heading
        mapper: Category/wavebank name mapper

    Returns:
        Formatted listing text
    """
    mapper = mapper or DEFAULT_MAPPER
    groups = group_tracks(tracks, mapper)

    output = []
    output.append(f"Sound bank: {bank_name}")
    output.append(f"Tracks: {sum(len(g) for _, g in groups)}")
    output.append("")

    for category, group in groups:
        output.append(f"=== {category} ({len(group)}) ===")
        for track in group:
            output.append(f"  {track.get_wavebank_name(mapper):15s} {track.get_soundbank_id()}  {track.name}")
        output.append("")

    return '\n'.join(output)
