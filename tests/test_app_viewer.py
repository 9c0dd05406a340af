import pytest

from rnaforce import app_viewer
from rnaforce.app_viewer import clear_structure, parse_pins, refresh_layout
from rnaforce.params import LayoutParams, get_preset


def test_parse_pins():
    assert parse_pins("1 10 20\n\n3, 5.5, -2\n") == {0: (10.0, 20.0), 2: (5.5, -2.0)}
    assert parse_pins("") == {}


def test_parse_pins_rejects_incomplete_line():
    with pytest.raises(ValueError, match="Line 2"):
        parse_pins("1 10 20\n4 5")


def test_refresh_layout_builds_then_reheats():
    state = {}
    sequence, structure = get_preset("hairpin")
    nodes, edges, messages = refresh_layout(state, sequence, structure, LayoutParams(), {})
    simulation = state["layout"]["simulation"]
    assert simulation.converged
    assert messages[0].startswith("Parsed")

    # Appearance only: nothing to recompute
    same_nodes, _, messages = refresh_layout(state, sequence, structure, LayoutParams(font_size=8), {})
    assert same_nodes is nodes
    assert messages == []

    _, _, messages = refresh_layout(state, sequence, structure, LayoutParams(pair_distance=90), {})
    assert state["layout"]["simulation"] is simulation
    assert simulation._distances[-1] == 90
    assert "Physics changed, reheating the current layout." in messages
    assert simulation.converged


def test_refresh_layout_resizes_and_pins():
    state = {}
    sequence, structure = get_preset("hairpin")
    nodes, _, _ = refresh_layout(state, sequence, structure, LayoutParams(), {})
    simulation = state["layout"]["simulation"]

    _, _, messages = refresh_layout(state, sequence, structure, LayoutParams(), {}, width=1000, height=400)
    assert simulation.center == (500, 200)
    assert any("resized" in m for m in messages)

    refresh_layout(state, sequence, structure, LayoutParams(), {0: (30.0, 40.0)}, width=1000, height=400)
    assert state["layout"]["simulation"] is simulation
    assert (nodes[0].x, nodes[0].y) == (30.0, 40.0)

    refresh_layout(state, sequence, structure, LayoutParams(), {}, width=1000, height=400)
    assert not nodes[0].pinned


def test_refresh_layout_new_input_starts_over():
    state = {}
    refresh_layout(state, *get_preset("hairpin"), LayoutParams(), {})
    first = state["layout"]["simulation"]
    nodes, _, _ = refresh_layout(state, *get_preset("pseudoknot"), LayoutParams(), {})
    assert state["layout"]["simulation"] is not first
    assert len(nodes) == len(get_preset("pseudoknot")[0])


def test_clear_structure_empties_inputs(monkeypatch):
    session_state = {"sequence_input": "GGGAAACCC", "structure_input": "(((...)))"}
    monkeypatch.setattr(app_viewer.st, "session_state", session_state)
    clear_structure()
    assert session_state == {"sequence_input": "", "structure_input": ""}
