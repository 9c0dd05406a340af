import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

BACKBONE = "backbone"
PAIR = "pair"

UNPAIRED = "."
UNKNOWN_BASE = "?"

# Opening bracket -> closing bracket. Each family is matched independently,
# which is what lets pseudoknots be written with a second family.
BRACKET_FAMILIES = {"(": ")", "[": "]", "{": "}", "<": ">"}
CLOSER_TO_OPENER = {close: open_ for open_, close in BRACKET_FAMILIES.items()}

BASE_CATEGORIES = ("A", "U", "G", "C", "T")
DEFAULT_CATEGORY = "default"

_WHITESPACE = re.compile(r"\s+")


@dataclass
class Node:
    """
    A single nucleotide of the diagram.

    ``x``/``y`` belong to the layout engine while ``pinned`` is False and to
    the user (drag or explicit pin) while it is True.
    """
    id: int
    base: str
    index: int
    x: float = 0.0
    y: float = 0.0
    pinned: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "base": self.base,
            "index": self.index,
            "x": self.x,
            "y": self.y,
            "pinned": self.pinned,
        }


@dataclass(frozen=True)
class Edge:
    """Backbone or base-pair connection between two node ids."""
    source: int
    target: int
    type: str
    family: Optional[str] = None

    @property
    def is_pair(self) -> bool:
        return self.type == PAIR

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "target": self.target,
            "type": self.type,
            "family": self.family,
        }


def normalize_inputs(sequence: str, structure: str) -> Tuple[str, str]:
    """
    Cleans a sequence / dot-bracket pair so both strings have the same length.

    The sequence is upper-cased and every whitespace character is removed from
    both strings. The structure is then right-padded with '.' when it is shorter
    than the sequence, or truncated when it is longer. This always runs before
    any indexed access into the structure.

    :param sequence: The nucleotide sequence, any alphabet (str).
    :param structure: The dot-bracket annotation (str).

    :returns: A tuple ``(sequence, structure)`` of equal length (tuple of str).
    """
    # Remove spaces and line breaks, bases are compared in upper case
    sequence = _WHITESPACE.sub("", sequence or "").upper()
    structure = _WHITESPACE.sub("", structure or "")

    # Missing positions are unpaired, extra ones are dropped
    if len(structure) < len(sequence):
        structure = structure.ljust(len(sequence), UNPAIRED)
    elif len(structure) > len(sequence):
        structure = structure[:len(sequence)]
    return sequence, structure


def _match_brackets(structure: str) -> List[Tuple[int, int, str]]:
    """Returns ``(open_idx, close_idx, opener)`` in the order pairs are closed."""
    # One stack of open positions per bracket family
    open_stacks: Dict[str, List[int]] = {opener: [] for opener in BRACKET_FAMILIES}
    matches = []
    for i, char in enumerate(structure):
        if char in open_stacks:
            # Opening bracket: remember where it is
            open_stacks[char].append(i)
        elif char in CLOSER_TO_OPENER:
            # Closing bracket: pairs with the last opener of its own family
            stack = open_stacks[CLOSER_TO_OPENER[char]]
            # A closer without an open partner is ignored
            if stack:
                matches.append((stack.pop(), i, CLOSER_TO_OPENER[char]))
    return matches


def parse_structure(sequence: str, structure: str) -> Tuple[List[Node], List[Edge]]:
    """
    Converts a sequence and its dot-bracket structure into a graph.

    One node is created per nucleotide. Consecutive nucleotides are joined by
    backbone edges, and every matched bracket pair becomes a pair edge. The four
    bracket families ``()``, ``[]``, ``{}`` and ``<>`` each keep their own
    stack, so pairs of different families may cross (pseudoknots) while pairs of
    the same family always nest. Unmatched brackets produce no edge and never
    raise: the parser accepts any input.

    :param sequence: The nucleotide sequence (str). Case and whitespace are normalised.
    :param structure: The dot-bracket annotation (str). Padded or truncated to the sequence length.

    :returns: A tuple ``(nodes, edges)``. Nodes are in sequence order; edges list
              every backbone edge first and then the pair edges in the order their
              closing bracket appears (tuple of list of Node, list of Edge).
    """
    sequence, structure = normalize_inputs(sequence, structure)
    n = len(sequence)

    # One node per nucleotide, numbered from 1 for display
    nodes = [Node(id=i, base=sequence[i] if i < len(sequence) else UNKNOWN_BASE, index=i + 1)
             for i in range(n)]

    # Backbone first, then the base pairs in the order they are closed
    edges = [Edge(i, i + 1, BACKBONE) for i in range(n - 1)]
    edges.extend(Edge(start, end, PAIR, opener) for start, end, opener in _match_brackets(structure))

    return nodes, edges


def get_base_pairs(structure: str) -> List[Tuple[int, int]]:
    """
    Lists the base pairs of a dot-bracket string as ``(i, j)`` tuples with ``i < j``.

    Uses the same four-family matching as :func:`parse_structure`, so
    ``"(([[))]]"`` yields both the parenthesis and the square bracket pairs.

    :param structure: The RNA secondary structure in dot-bracket notation (str).

    :returns: 0-based index pairs in the order they are closed (list of tuple).
    """
    return [(i, j) for i, j, _ in _match_brackets(structure)]


def get_pairing_dict(structure: str) -> Dict[int, int]:
    """
    Maps every paired position to its partner, in both directions.

    :param structure: The RNA secondary structure in dot-bracket notation (str).

    :returns: For example ``{0: 9, 9: 0, 1: 8, 8: 1}`` (dict).
    """
    pairs = {}
    for i, j in get_base_pairs(structure):
        pairs[i] = j
        pairs[j] = i
    return pairs


def base_category(base: str) -> str:
    """Colour category of a base; anything outside AUGCT falls back to 'default'."""
    base = (base or "").upper()
    return base if base in BASE_CATEGORIES else DEFAULT_CATEGORY


def count_pairs_by_family(edges: List[Edge]) -> Dict[str, int]:
    """Number of pair edges per opening bracket, e.g. ``{'(': 4, '[': 4}``."""
    counts = {opener: 0 for opener in BRACKET_FAMILIES}
    for edge in edges:
        if edge.is_pair and edge.family in counts:
            counts[edge.family] += 1
    return counts
