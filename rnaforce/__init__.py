from .structure import Node, Edge, parse_structure, normalize_inputs, get_base_pairs, get_pairing_dict
from .params import LayoutParams, PRESETS, get_preset, random_structure
from .simulation import ForceSimulation
from .layout import apply_physics, apply_pins, build_simulation, update_params, prepare_layout, settle, layout_structure
from .drawing import draw_structure, export_structure, render_to_bytes
from .io_tools import layout_to_dict, write_layout_json, create_zip_archive
