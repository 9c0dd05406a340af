from rnaforce.params import LayoutParams
from rnaforce.simulation import ForceSimulation
from rnaforce.structure import BACKBONE, parse_structure

COLLISION_MARGIN = 2.0
PAIR_STRENGTH_FACTOR = 0.8
MAX_LINK_STRENGTH = 1.0

DEFAULT_WIDTH = 800
DEFAULT_HEIGHT = 600

# Reheat used after a slider change or a resize, lower than a fresh start
REHEAT_ALPHA = 0.3

# The many-body force compares every node with every other node on each tick
MAX_LAYOUT_LENGTH = 1000


def _no_log(message):
    pass


def link_distance(edge, params):
    """Rest length of an edge: backbone or pair distance."""
    return params.backbone_distance if edge.type == BACKBONE else params.pair_distance


def link_strength(edge, params):
    """Spring strength of an edge. Pairs are softer than the backbone; both are capped at 1."""
    strength = params.link_strength if edge.type == BACKBONE else params.link_strength * PAIR_STRENGTH_FACTOR
    return min(MAX_LINK_STRENGTH, strength)


def apply_physics(simulation, edges, params, alpha=REHEAT_ALPHA):
    """
    Configures a force simulation from a parameter record.

    Every edge gets its rest length and strength from :func:`link_distance` and
    :func:`link_strength`, the many-body force gets ``charge_strength`` and the
    collision radius is ``node_radius`` plus a small margin. The simulation is
    then reheated so that it settles on the new configuration instead of
    staying frozen on the previous one.

    This function keeps no state of its own and must be called again whenever
    the edges or the physics parameters change.

    :param simulation: The layout engine to configure (ForceSimulation).
    :param edges: Edges from :func:`rnaforce.structure.parse_structure` (list of Edge).
    :param params: Physics and display parameters (LayoutParams).
    :param alpha: Energy to restart with (float).

    :returns: The configured simulation (ForceSimulation).
    """
    # Springs: one rest length and one strength per edge, in edge order
    simulation.set_edges(
        [(edge.source, edge.target) for edge in edges],
        [link_distance(edge, params) for edge in edges],
        [link_strength(edge, params) for edge in edges],
    )
    # Global repulsion between every pair of nucleotides
    simulation.set_repulsion(params.charge_strength)
    # Circles must not overlap, plus a small gap between them
    simulation.set_collision_radius(params.node_radius + COLLISION_MARGIN)
    # Give the engine energy again so the new forces take effect
    simulation.restart(alpha)
    return simulation


def initial_positions(nodes, width=DEFAULT_WIDTH, height=DEFAULT_HEIGHT):
    """
    Places nodes on a slightly zig-zagged horizontal line around the centre.

    Gives the simulation a deterministic starting point: consecutive nodes are
    10 units apart and alternate 5 units above and below the centre line.
    Pinned nodes are left where they are.
    """
    cx, cy = width / 2, height / 2
    n = len(nodes)
    for i, node in enumerate(nodes):
        if node.pinned:
            continue
        node.x = cx + (i - n / 2) * 10
        node.y = cy + (5 if i % 2 == 0 else -5)
    return nodes


def build_simulation(nodes, edges, params=None, width=DEFAULT_WIDTH, height=DEFAULT_HEIGHT, seed=0):
    """
    Creates a simulation for a freshly parsed structure, ready to be ticked.

    :param nodes: Nodes from the parser (list of Node).
    :param edges: Edges from the parser (list of Edge).
    :param params: Layout parameters; defaults when None (LayoutParams or None).
    :param width: Width of the drawing area, used for the centering force (float).
    :param height: Height of the drawing area (float).
    :param seed: Seed of the small random jitter used on coincident nodes (int).

    :returns: A simulation at full energy (ForceSimulation).
    """
    params = params or LayoutParams()
    initial_positions(nodes, width, height)
    simulation = ForceSimulation(nodes, seed=seed)
    simulation.set_center(width / 2, height / 2)
    # A new structure starts hot, unlike a parameter change
    return apply_physics(simulation, edges, params, alpha=1.0)


def update_params(simulation, edges, params, alpha=REHEAT_ALPHA):
    """Re-applies physics after a parameter change with a gentle reheat."""
    return apply_physics(simulation, edges, params, alpha=alpha)


def resize(simulation, width, height):
    """Moves the centering force to the middle of a resized drawing area."""
    simulation.set_center(width / 2, height / 2)
    return simulation.restart(REHEAT_ALPHA)


def apply_pins(simulation, pinned, log_func=None):
    """
    Makes the pinned nodes of a simulation match ``pinned``.

    Nodes listed in ``pinned`` are fixed at their position, previously pinned
    nodes that are no longer listed are released. Ids outside the structure
    are reported through ``log_func`` and skipped.

    :param simulation: The layout engine (ForceSimulation).
    :param pinned: Maps 0-based node ids to fixed ``(x, y)`` positions (dict).
    :param log_func: Function receiving progress messages (callable or None).

    :returns: The simulation (ForceSimulation).
    """
    log_func = log_func or _no_log
    n = len(simulation.nodes)
    for node_id, node in enumerate(simulation.nodes):
        if node.pinned and node_id not in pinned:
            simulation.unpin(node_id)
    for node_id, (x, y) in pinned.items():
        if 0 <= node_id < n:
            simulation.pin(node_id, x, y)
        else:
            log_func(f"Ignoring pin for node {node_id}: structure has {n} nucleotides.")
    return simulation


def prepare_layout(sequence, structure, params=None, width=DEFAULT_WIDTH, height=DEFAULT_HEIGHT,
                   log_func=None, pinned=None):
    """
    Parses a structure and builds its simulation without running it.

    :raises ValueError: If the sequence is longer than ``MAX_LAYOUT_LENGTH``.

    :returns: A tuple ``(nodes, edges, simulation)`` (tuple).
    """
    log_func = log_func or _no_log
    params = params or LayoutParams()
    nodes, edges = parse_structure(sequence, structure)
    if len(nodes) > MAX_LAYOUT_LENGTH:
        raise ValueError(f"The sequence has {len(nodes)} nucleotides; at most {MAX_LAYOUT_LENGTH} can be laid out.")
    log_func(f"Parsed {len(nodes)} nucleotides, {sum(e.is_pair for e in edges)} base pairs.")

    simulation = build_simulation(nodes, edges, params, width, height)
    apply_pins(simulation, pinned or {}, log_func)
    return nodes, edges, simulation


def settle(simulation, max_ticks=1000, log_func=None):
    """
    Runs a simulation until it converges or ``max_ticks`` is reached, and reports how it ended.

    :returns: The number of ticks performed (int).
    """
    log_func = log_func or _no_log
    ticks = simulation.run(max_ticks)
    if simulation.converged:
        log_func(f"Layout converged after {ticks} ticks.")
    else:
        log_func(f"Layout stopped after {ticks} ticks (alpha={simulation.alpha:.4f}).")
    return ticks


def layout_structure(sequence, structure, params=None, width=DEFAULT_WIDTH, height=DEFAULT_HEIGHT,
                     max_ticks=1000, log_func=None, pinned=None):
    """
    Parses a structure and runs the force layout until it settles.

    :param sequence: The nucleotide sequence (str).
    :param structure: The dot-bracket structure (str).
    :param params: Layout parameters; defaults when None (LayoutParams or None).
    :param width: Width of the drawing area (float).
    :param height: Height of the drawing area (float).
    :param max_ticks: Upper bound on the number of simulation steps (int).
    :param log_func: Function receiving progress messages (callable or None).
    :param pinned: Maps 0-based node ids to fixed ``(x, y)`` positions (dict or None).

    :raises ValueError: If the sequence is longer than ``MAX_LAYOUT_LENGTH``.

    :returns: A tuple ``(nodes, edges)`` with final positions on the nodes (tuple).
    """
    nodes, edges, simulation = prepare_layout(sequence, structure, params, width, height, log_func, pinned)
    settle(simulation, max_ticks, log_func)
    return nodes, edges
