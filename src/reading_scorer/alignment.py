from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence


class StepKind(str, Enum):
    MATCH = "match"
    SUBSTITUTION = "substitution"
    DELETION = "deletion"
    INSERTION = "insertion"


@dataclass(frozen=True, slots=True)
class AlignmentStep:
    """One pairing in a word alignment.

    ``expected_index`` points into the expected words. For insertions it is the
    index of the next expected word (``len(expected)`` at the tail).
    """

    kind: StepKind
    expected_index: int
    expected: str
    actual: str


def align_words(expected: Sequence[str], actual: Sequence[str]) -> List[AlignmentStep]:
    """
    Minimum-edit alignment of two word sequences.

    Only identical words match. On ties the walk back from the end prefers a
    diagonal step, then a deletion, then an insertion, which keeps the output
    deterministic for repeated inputs.
    """
    rows = len(expected)
    cols = len(actual)
    table = _edit_table(expected, actual)

    steps: List[AlignmentStep] = []
    i, j = rows, cols
    while i > 0 or j > 0:
        if i > 0 and j > 0:
            same = expected[i - 1] == actual[j - 1]
            if table[i][j] == table[i - 1][j - 1] + (0 if same else 1):
                kind = StepKind.MATCH if same else StepKind.SUBSTITUTION
                steps.append(AlignmentStep(kind, i - 1, expected[i - 1], actual[j - 1]))
                i -= 1
                j -= 1
                continue
        if i > 0 and table[i][j] == table[i - 1][j] + 1:
            steps.append(AlignmentStep(StepKind.DELETION, i - 1, expected[i - 1], ""))
            i -= 1
        else:
            steps.append(AlignmentStep(StepKind.INSERTION, i, "", actual[j - 1]))
            j -= 1

    steps.reverse()
    return steps


def edit_distance(expected: Sequence[str], actual: Sequence[str]) -> int:
    """Word-level edit distance between two sequences."""
    return _edit_table(expected, actual)[len(expected)][len(actual)]


def _edit_table(expected: Sequence[str], actual: Sequence[str]) -> List[List[int]]:
    rows = len(expected)
    cols = len(actual)
    table = [[0] * (cols + 1) for _ in range(rows + 1)]
    for i in range(rows + 1):
        table[i][0] = i
    for j in range(cols + 1):
        table[0][j] = j
    for i in range(1, rows + 1):
        for j in range(1, cols + 1):
            cost = 0 if expected[i - 1] == actual[j - 1] else 1
            table[i][j] = min(
                table[i - 1][j] + 1,
                table[i][j - 1] + 1,
                table[i - 1][j - 1] + cost,
            )
    return table
