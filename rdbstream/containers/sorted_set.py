"""
Score normalization for sorted sets packed as ziplists or listpacks.

Packed sorted sets store scores as text written by the server's own float
formatter, which spells the special values differently from the text score
encoding. Scores sit at odd positions of the flattened member/score list.
"""

from typing import List

from ..codec.encoding import NAN, NEGATIVE_INFINITY, POSITIVE_INFINITY

SPECIAL_SCORES = {
    b"inf": POSITIVE_INFINITY,
    b"+inf": POSITIVE_INFINITY,
    b"infinity": POSITIVE_INFINITY,
    b"+infinity": POSITIVE_INFINITY,
    b"-inf": NEGATIVE_INFINITY,
    b"-infinity": NEGATIVE_INFINITY,
    b"nan": NAN,
    b"-nan": NAN,
}


def normalize_scores(values: List[bytes]) -> List[bytes]:
    for i in range(1, len(values), 2):
        canonical = SPECIAL_SCORES.get(values[i].lower())
        if canonical is not None:
            values[i] = canonical
    return values
