"""
Montage groups - Longitudinal bipolar ("double banana") chains.

Each group is a chain of channel indices; a chain of length k yields the
k - 1 differences samples[chain[i]] - samples[chain[i - 1]].
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, List, Tuple

from eegspec.core.errors import InvalidParametersError


class Electrode(IntEnum):
    """Channel index of each 10-20 electrode in the recording."""
    FP1 = 0
    F7 = 1
    T3 = 2
    T5 = 3
    O1 = 4
    F3 = 5
    C3 = 6
    P3 = 7
    FP2 = 8
    F4 = 9
    C4 = 10
    P4 = 11
    O2 = 12
    F8 = 13
    T4 = 14
    T6 = 15


@dataclass(frozen=True)
class MontageGroup:
    """Named chain of channel indices."""
    name: str
    chain: Tuple[int, ...]

    @property
    def n_differences(self) -> int:
        return len(self.chain) - 1

    @property
    def max_channel(self) -> int:
        return max(self.chain)


LEFT_LATERAL = MontageGroup("LL", (Electrode.FP1, Electrode.F7, Electrode.T3, Electrode.T5, Electrode.O1))
LEFT_PARASAGITTAL = MontageGroup("LP", (Electrode.FP1, Electrode.F3, Electrode.C3, Electrode.P3, Electrode.O1))
RIGHT_PARASAGITTAL = MontageGroup("RP", (Electrode.FP2, Electrode.F4, Electrode.C4, Electrode.P4, Electrode.O2))
RIGHT_LATERAL = MontageGroup("RL", (Electrode.FP2, Electrode.F8, Electrode.T4, Electrode.T6, Electrode.O2))

# Order in which groups are computed and streamed
MONTAGE_GROUPS: List[MontageGroup] = [
    LEFT_LATERAL,
    LEFT_PARASAGITTAL,
    RIGHT_PARASAGITTAL,
    RIGHT_LATERAL,
]

_BY_NAME: Dict[str, MontageGroup] = {group.name: group for group in MONTAGE_GROUPS}


def get_montage_group(name: str) -> MontageGroup:
    """Look up a group by label (case-insensitive)."""
    try:
        return _BY_NAME[name.upper()]
    except KeyError:
        raise InvalidParametersError(
            f"Unknown montage group: {name}",
            data={"group": name, "available": sorted(_BY_NAME)},
        )
