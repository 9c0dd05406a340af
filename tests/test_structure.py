import pytest

from rnaforce.structure import (
    BACKBONE,
    PAIR,
    base_category,
    count_pairs_by_family,
    get_base_pairs,
    get_pairing_dict,
    normalize_inputs,
    parse_structure,
)


def pair_tuples(edges):
    return [(e.source, e.target) for e in edges if e.type == PAIR]


def backbone_edges(edges):
    return [e for e in edges if e.type == BACKBONE]


def test_hairpin_example():
    nodes, edges = parse_structure("GGGGAAAACCCC", "((((....))))")
    assert len(nodes) == 12
    assert len(backbone_edges(edges)) == 11
    assert sorted(pair_tuples(edges)) == [(0, 11), (1, 10), (2, 9), (3, 8)]


def test_pair_edges_follow_closing_order():
    _, edges = parse_structure("GGGGAAAACCCC", "((((....))))")
    assert pair_tuples(edges) == [(3, 8), (2, 9), (1, 10), (0, 11)]


def test_pseudoknot_example():
    nodes, edges = parse_structure("GGGGAAAAAAACCCCUUUUUUU", "((((...[[[[))))...]]]]")
    assert len(nodes) == 22
    assert pair_tuples(edges) == [
        (3, 11), (2, 12), (1, 13), (0, 14),
        (10, 18), (9, 19), (8, 20), (7, 21),
    ]
    families = [e.family for e in edges if e.type == PAIR]
    assert families == ["("] * 4 + ["["] * 4


def test_nodes_carry_base_and_one_based_index():
    nodes, _ = parse_structure("acgu", "....")
    assert [(n.id, n.base, n.index) for n in nodes] == [(0, "A", 1), (1, "C", 2), (2, "G", 3), (3, "U", 4)]
    assert not any(n.pinned for n in nodes)


def test_backbone_edges_come_first():
    _, edges = parse_structure("GGGAAACCC", "(((...)))")
    types = [e.type for e in edges]
    assert types == [BACKBONE] * 8 + [PAIR] * 3
    assert [(e.source, e.target) for e in edges[:8]] == [(i, i + 1) for i in range(8)]


@pytest.mark.parametrize("sequence", ["", "A", "AC", "GGGGAAAACCCC", "N" * 57])
def test_node_and_backbone_counts(sequence):
    nodes, edges = parse_structure(sequence, "")
    assert len(nodes) == len(sequence)
    assert len(backbone_edges(edges)) == max(0, len(sequence) - 1)
    assert pair_tuples(edges) == []


def test_balanced_single_family_sources_precede_targets():
    structure = "((.((...)).((...))))..((....))"
    _, edges = parse_structure("A" * len(structure), structure)
    pairs = pair_tuples(edges)
    assert len(pairs) == structure.count("(")
    assert all(source < target for source, target in pairs)


def test_unbalanced_closer_is_ignored():
    nodes, edges = parse_structure("A", ")")
    assert len(nodes) == 1
    assert pair_tuples(edges) == []


def test_unmatched_openers_leave_no_edge():
    _, edges = parse_structure("AAAAAA", "((.)..")
    assert pair_tuples(edges) == [(1, 3)]


def test_crossing_families_are_both_kept():
    _, edges = parse_structure("AAAAAAAA", "(([[))]]")
    assert pair_tuples(edges) == [(1, 4), (0, 5), (3, 6), (2, 7)]


def test_same_family_nests_lifo():
    # A crossing written with a single family is read as nested pairs
    _, edges = parse_structure("AAAA", "(())")
    assert pair_tuples(edges) == [(1, 2), (0, 3)]


def test_all_four_families():
    _, edges = parse_structure("AAAAAAAA", "([{<>}])")
    assert pair_tuples(edges) == [(3, 4), (2, 5), (1, 6), (0, 7)]
    assert count_pairs_by_family(edges) == {"(": 1, "[": 1, "{": 1, "<": 1}


def test_short_structure_is_padded():
    nodes, edges = parse_structure("GGGAAACCC", "(((")
    assert len(nodes) == 9
    assert pair_tuples(edges) == []


def test_long_structure_is_truncated():
    nodes, edges = parse_structure("GGGG", "((..))))")
    assert len(nodes) == 4
    # Closers beyond the sequence are cut before matching
    for source, target in pair_tuples(edges):
        assert 0 <= source < 4 and 0 <= target < 4
    assert pair_tuples(edges) == []


def test_truncation_keeps_pairs_inside_sequence():
    _, edges = parse_structure("GGGAAACCC", "(((...)))((((")
    assert pair_tuples(edges) == [(2, 6), (1, 7), (0, 8)]


def test_normalize_inputs():
    assert normalize_inputs(" gg aa\ncc ", "((\t..") == ("GGAACC", "((....")
    assert normalize_inputs("AC", "(((((") == ("AC", "((")
    assert normalize_inputs("", "()") == ("", "")


def test_whitespace_in_structure_is_removed_before_matching():
    _, edges = parse_structure("GGGAAACCC", "((( ... )))")
    assert pair_tuples(edges) == [(2, 6), (1, 7), (0, 8)]


def test_unknown_symbols_are_inert():
    nodes, edges = parse_structure("AXZ-A", "(x:-)")
    assert [n.base for n in nodes] == ["A", "X", "Z", "-", "A"]
    assert pair_tuples(edges) == [(0, 4)]


def test_parse_is_deterministic():
    first = parse_structure("GCGGAUUUAGCUCAGUUGGGAGAGC", "(((((((..((((........))))")
    second = parse_structure("GCGGAUUUAGCUCAGUUGGGAGAGC", "(((((((..((((........))))")
    assert first == second


def test_empty_input_gives_empty_graph():
    assert parse_structure("", "") == ([], [])
    assert parse_structure(None, None) == ([], [])


def test_base_pairs_helpers():
    assert get_base_pairs("((..))") == [(1, 4), (0, 5)]
    assert get_base_pairs("([)]") == [(0, 2), (1, 3)]
    assert get_pairing_dict("(..)") == {0: 3, 3: 0}


def test_base_category():
    assert base_category("a") == "A"
    assert base_category("T") == "T"
    assert base_category("N") == "default"
    assert base_category("") == "default"
