import json
import os
import tempfile

import pandas as pd
import streamlit as st

from rnaforce.drawing import BASE_COLOURS, draw_structure, render_to_bytes
from rnaforce.input_utils import parse_dot_bracket_file
from rnaforce.io_tools import create_zip_archive, layout_to_dict, save_structure_bundle
from rnaforce.layout import (
    DEFAULT_HEIGHT,
    DEFAULT_WIDTH,
    REHEAT_ALPHA,
    apply_pins,
    prepare_layout,
    resize,
    settle,
    update_params,
)
from rnaforce.params import LINE_STYLES, NODE_STYLES, PRESETS, LayoutParams, random_structure
from rnaforce.structure import count_pairs_by_family

PHYSICS_FIELDS = ("node_radius", "backbone_distance", "pair_distance", "charge_strength", "link_strength")


def parse_pins(text):
    """
    Reads pinned positions typed as one ``position x y`` per line (1-based position).

    :raises ValueError: If a line does not have three numeric values.

    :returns: ``{node_id: (x, y)}`` with 0-based node ids (dict).
    """
    pins = {}
    for line_number, line in enumerate((text or "").splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        parts = line.replace(",", " ").split()
        if len(parts) != 3:
            raise ValueError(f"Line {line_number}: expected 'position x y', got '{line}'.")
        position, x, y = parts
        pins[int(position) - 1] = (float(x), float(y))
    return pins


def refresh_layout(state, sequence, structure, params, pins, width=DEFAULT_WIDTH, height=DEFAULT_HEIGHT):
    """
    Brings the layout kept in ``state`` up to date with the current inputs.

    A new sequence or structure builds a fresh simulation. Otherwise the
    previous simulation is kept and only what changed is applied to it:
    physics parameters through :func:`rnaforce.layout.update_params`, the
    drawing area through :func:`rnaforce.layout.resize` and the pins through
    :func:`rnaforce.layout.apply_pins`, each followed by a gentle reheat from
    the current positions. Appearance settings never touch the simulation.

    :param state: Mapping that survives reruns, ``st.session_state`` in the app (dict-like).
    :param sequence: The nucleotide sequence (str).
    :param structure: The dot-bracket structure (str).
    :param params: Current sidebar parameters (LayoutParams).
    :param pins: Pinned positions, 0-based (dict).
    :param width: Width of the drawing area (float).
    :param height: Height of the drawing area (float).

    :raises ValueError: If the sequence is too long to be laid out.

    :returns: A tuple ``(nodes, edges, messages)`` (tuple).
    """
    messages = []
    key = (sequence, structure)
    physics = tuple(getattr(params, name) for name in PHYSICS_FIELDS)
    current = state.get("layout")

    if current is None or current["key"] != key:
        # New input: start again from the zig-zag line
        nodes, edges, simulation = prepare_layout(sequence, structure, params, width, height,
                                                  messages.append, pins)
        current = {"key": key, "nodes": nodes, "edges": edges, "simulation": simulation,
                   "physics": physics, "size": (width, height), "pins": dict(pins)}
        state["layout"] = current
    else:
        simulation = current["simulation"]
        if current["physics"] != physics:
            update_params(simulation, current["edges"], params)
            current["physics"] = physics
            messages.append("Physics changed, reheating the current layout.")
        if current["size"] != (width, height):
            resize(simulation, width, height)
            current["size"] = (width, height)
            messages.append(f"Drawing area resized to {width:g} x {height:g}.")
        if current["pins"] != pins:
            apply_pins(simulation, pins, messages.append)
            simulation.restart(REHEAT_ALPHA)
            current["pins"] = dict(pins)
            messages.append("Pins changed, reheating the current layout.")

    # Nothing to do when only the appearance changed
    if not current["simulation"].converged:
        settle(current["simulation"], log_func=messages.append)
    return current["nodes"], current["edges"], messages


def load_example(sequence, structure):
    st.session_state["sequence_input"] = sequence
    st.session_state["structure_input"] = structure


def clear_structure():
    """Empties both text areas; the viewer then waits for a new sequence."""
    load_example("", "")


def sidebar_params():
    """Builds a LayoutParams from the sidebar controls."""
    defaults = LayoutParams()
    with st.sidebar:
        st.subheader("Appearance")
        node_radius = st.slider("Node radius", 5.0, 40.0, defaults.node_radius, 1.0)
        font_size = st.slider("Font size", 0.0, 40.0, defaults.font_size, 1.0)
        node_style = st.selectbox("Node style", NODE_STYLES, index=NODE_STYLES.index(defaults.node_style))
        backbone_style = st.selectbox("Backbone style", LINE_STYLES,
                                      index=LINE_STYLES.index(defaults.backbone_style))
        backbone_width = st.slider("Backbone width", 0.5, 10.0, defaults.backbone_width, 0.5)
        pair_style = st.selectbox("Pair style", LINE_STYLES, index=LINE_STYLES.index(defaults.pair_style))
        pair_width = st.slider("Pair width", 0.5, 10.0, defaults.pair_width, 0.5)
        show_backbone = st.checkbox("Show backbone", value=defaults.show_backbone)

        st.subheader("Physics")
        backbone_distance = st.slider("Backbone distance", 10.0, 150.0, defaults.backbone_distance, 1.0)
        pair_distance = st.slider("Pair distance", 10.0, 150.0, defaults.pair_distance, 1.0)
        charge_strength = st.slider("Charge", -1000.0, 0.0, defaults.charge_strength, 10.0)
        link_strength = st.slider("Link strength", 0.0, 1.0, defaults.link_strength, 0.05)

    return LayoutParams(
        node_radius=node_radius,
        backbone_distance=backbone_distance,
        pair_distance=pair_distance,
        charge_strength=charge_strength,
        link_strength=link_strength,
        font_size=font_size,
        node_style=node_style,
        backbone_style=backbone_style,
        pair_style=pair_style,
        backbone_width=backbone_width,
        pair_width=pair_width,
        show_backbone=show_backbone,
    )


# ===== Structure viewer tab =====
def structure_viewer_tab():

    st.markdown("""<div style="font-size: 2.7rem; color: #3b82f6; font-weight: bold; margin-top: 1rem;">
        Structure Viewer:
    </div>
    """, unsafe_allow_html=True)

    if "sequence_input" not in st.session_state:
        load_example(PRESETS["hairpin"]["seq"], PRESETS["hairpin"]["struct"])

    st.markdown("""**Examples**""")
    columns = st.columns(len(PRESETS) + 2)
    for column, name in zip(columns, PRESETS):
        column.button(name.capitalize(), on_click=load_example,
                      args=(PRESETS[name]["seq"], PRESETS[name]["struct"]), use_container_width=True)
    columns[-2].button("Random", on_click=lambda: load_example(*random_structure()), use_container_width=True)
    columns[-1].button("Clear", on_click=clear_structure, use_container_width=True)

    uploaded_file = st.file_uploader("Or load a dot-bracket file (.dbn, .fold, .txt)", type=["dbn", "fold", "txt"])
    if uploaded_file is not None and st.session_state.get("loaded_file") != uploaded_file.name:
        try:
            _, sequence, structure = parse_dot_bracket_file(uploaded_file)
            load_example(sequence, structure)
            st.session_state["loaded_file"] = uploaded_file.name
            st.success(f"'{uploaded_file.name}' loaded correctly.")
        except ValueError as e:
            st.error(str(e))

    sequence = st.text_area("Sequence", key="sequence_input", height=80)
    structure = st.text_area("Structure (dot-bracket, families () [] {} <>)", key="structure_input", height=80)
    pins_text = st.text_area("Pinned nucleotides (one 'position x y' per line)", value="", height=80)

    params = sidebar_params()
    with st.sidebar:
        st.subheader("Drawing area")
        width = st.slider("Width", 400, 1600, DEFAULT_WIDTH, 50)
        height = st.slider("Height", 300, 1200, DEFAULT_HEIGHT, 50)

    try:
        pins = parse_pins(pins_text)
    except ValueError as e:
        st.error(str(e))
        pins = {}

    try:
        nodes, edges, messages = refresh_layout(st.session_state, sequence, structure, params, pins, width, height)
    except ValueError as e:
        st.error(str(e))
        return

    if not nodes:
        st.info("Enter a sequence to draw its structure.")
        return

    pairs = count_pairs_by_family(edges)
    metric_columns = st.columns(3)
    metric_columns[0].metric("Nucleotides", len(nodes))
    metric_columns[1].metric("Base pairs", sum(pairs.values()))
    metric_columns[2].metric("Bracket families", sum(1 for count in pairs.values() if count))

    fig = draw_structure(nodes, edges, params)
    st.pyplot(fig)
    for message in messages:
        st.caption(message)

    # legend
    st.markdown(" ".join(
        f"<span style='background-color: {colour}; display: inline-block; width: 14px; height: 14px;"
        f" margin: 0 4px 0 12px; border-radius: 50%;'></span>{base}"
        for base, colour in BASE_COLOURS.items()
    ), unsafe_allow_html=True)

    with st.expander("Nucleotide positions"):
        st.dataframe(pd.DataFrame([node.to_dict() for node in nodes]), use_container_width=True)

    st.subheader("Export")
    export_columns = st.columns(4)
    export_columns[0].download_button("SVG", render_to_bytes(nodes, edges, params, "svg"),
                                      file_name="rna_structure.svg", mime="image/svg+xml")
    export_columns[1].download_button("PNG", render_to_bytes(nodes, edges, params, "png"),
                                      file_name="rna_structure.png", mime="image/png")
    layout_json = json.dumps(layout_to_dict(nodes, edges, params, sequence, structure), indent=2)
    export_columns[2].download_button("JSON", layout_json, file_name="rna_structure.json",
                                      mime="application/json")
    with tempfile.TemporaryDirectory() as tmp:
        bundle_dir = os.path.join(tmp, "rna_structure")
        save_structure_bundle(nodes, edges, params, bundle_dir, sequence=sequence, structure=structure)
        export_columns[3].download_button("ZIP", create_zip_archive(bundle_dir),
                                          file_name="rna_structure.zip", mime="application/zip")


def help_tab():
    st.header("How to use the viewer")
    st.markdown("""
    1. Type or paste a sequence and its dot-bracket structure, load a file, or pick an example.
    2. Pairs are written with matching brackets. The four families `()`, `[]`, `{}` and `<>` are
       matched independently, so a pseudoknot is written with a second family, e.g. `((((...[[[[))))...]]]]`.
    3. A structure shorter than the sequence is completed with unpaired positions, a longer one is cut.
       Closing brackets without a partner are ignored.
    4. Appearance settings only redraw the picture. Physics, drawing area and pin changes reheat the
       current layout gently, so the diagram moves from where it is instead of starting over.
    5. Pin nucleotides by typing `position x y`, one per line, to fix them on the drawing.
    6. **Clear** empties both fields. The base and position of every nucleotide are listed under
       *Nucleotide positions*.
    7. Sequences are limited to 1000 nucleotides.
    """)
