import math

import numpy as np
import pytest

from rnaforce.simulation import ALPHA_MIN, ForceSimulation, _disjoint_batches
from rnaforce.structure import Node


def make_nodes(points):
    return [Node(id=i, base="A", index=i + 1, x=x, y=y) for i, (x, y) in enumerate(points)]


def distance(a, b):
    return math.hypot(a.x - b.x, a.y - b.y)


def test_runs_to_convergence_in_about_300_ticks():
    simulation = ForceSimulation(make_nodes([(0, 0), (10, 0)]))
    ticks = simulation.run(max_ticks=1000)
    assert simulation.converged
    assert simulation.alpha < ALPHA_MIN
    assert 295 <= ticks <= 305


def test_run_respects_max_ticks():
    simulation = ForceSimulation(make_nodes([(0, 0), (10, 0)]))
    assert simulation.run(max_ticks=5) == 5
    assert not simulation.converged


def test_spring_pulls_towards_rest_length():
    nodes = make_nodes([(0, 0), (100, 0)])
    simulation = ForceSimulation(nodes).set_edges([(0, 1)], [30], [1.0])
    simulation.run()
    assert distance(nodes[0], nodes[1]) == pytest.approx(30, abs=1)


def test_repulsion_pushes_nodes_apart():
    nodes = make_nodes([(0, 0), (5, 0)])
    ForceSimulation(nodes).set_repulsion(-100).run()
    assert distance(nodes[0], nodes[1]) > 5


def test_collision_separates_overlapping_nodes():
    nodes = make_nodes([(0, 0), (4, 0), (0, 4)])
    simulation = ForceSimulation(nodes).set_collision_radius(10)
    simulation.run()
    for i in range(3):
        for j in range(i + 1, 3):
            assert distance(nodes[i], nodes[j]) > 15


def test_center_force_moves_mean():
    nodes = make_nodes([(0, 0), (10, 0), (20, 0)])
    ForceSimulation(nodes).set_center(300, 200).tick()
    assert np.mean([n.x for n in nodes]) == pytest.approx(300)
    assert np.mean([n.y for n in nodes]) == pytest.approx(200)


def test_pinned_node_does_not_move():
    nodes = make_nodes([(0, 0), (100, 0), (200, 0)])
    simulation = ForceSimulation(nodes).set_edges([(0, 1), (1, 2)], [20, 20], [1.0, 1.0])
    simulation.set_repulsion(-50).pin(1, 50, 50)
    simulation.run()
    assert (nodes[1].x, nodes[1].y) == (50, 50)
    assert nodes[1].pinned
    assert distance(nodes[0], nodes[1]) < 40


def test_nodes_pinned_before_start_keep_their_position():
    nodes = make_nodes([(0, 0), (30, 0)])
    nodes[0].pinned = True
    ForceSimulation(nodes).set_center(500, 500).run()
    assert (nodes[0].x, nodes[0].y) == (0, 0)


def test_drag_cycle():
    nodes = make_nodes([(0, 0), (40, 0), (80, 0)])
    simulation = ForceSimulation(nodes).set_edges([(0, 1), (1, 2)], [40, 40], [0.5, 0.5]).set_repulsion(-30)
    simulation.run()

    simulation.drag_start(2)
    assert simulation.alpha_target == 0.3
    simulation.drag_to(2, 200, 0)
    for _ in range(50):
        simulation.tick()
    # A drag keeps the simulation warm
    assert not simulation.converged
    assert (nodes[2].x, nodes[2].y) == (200, 0)

    simulation.drag_end(2)
    assert simulation.alpha_target == 0
    assert not nodes[2].pinned
    simulation.run(max_ticks=2000)
    assert simulation.converged
    assert nodes[2].x != 200


def test_tick_callbacks_receive_simulation():
    seen = []
    simulation = ForceSimulation(make_nodes([(0, 0), (1, 1)]))
    simulation.on_tick(lambda sim: seen.append(sim.ticks))
    simulation.tick()
    simulation.tick()
    assert seen == [1, 2]


def test_positions_are_written_back_to_nodes():
    nodes = make_nodes([(0, 0), (1, 0)])
    simulation = ForceSimulation(nodes).set_repulsion(-30)
    simulation.tick()
    assert [(n.x, n.y) for n in nodes] == [tuple(p) for p in simulation.positions.tolist()]


def test_coincident_nodes_are_separated():
    nodes = make_nodes([(10, 10), (10, 10)])
    ForceSimulation(nodes).set_repulsion(-30).set_collision_radius(5).run()
    assert distance(nodes[0], nodes[1]) > 0


def test_set_nodes_replaces_subject():
    simulation = ForceSimulation(make_nodes([(0, 0), (1, 0)])).set_edges([(0, 1)], [10], [1])
    simulation.set_nodes(make_nodes([(0, 0)]))
    assert len(simulation.positions) == 1
    assert len(simulation._links) == 0


def test_set_edges_validation():
    simulation = ForceSimulation(make_nodes([(0, 0), (1, 0)]))
    with pytest.raises(ValueError):
        simulation.set_edges([(0, 1)], [10, 20], [1])
    with pytest.raises(ValueError):
        simulation.set_edges([(0, 5)], [10], [1])


def test_empty_simulation_ticks():
    simulation = ForceSimulation([])
    simulation.run()
    assert simulation.converged


def test_disjoint_batches_share_no_node():
    links = np.array([(0, 1), (1, 2), (2, 3), (3, 4), (0, 4), (1, 3)])
    batches = _disjoint_batches(links)
    assert sorted(np.concatenate(batches).tolist()) == list(range(len(links)))
    for batch in batches:
        ends = links[batch].ravel().tolist()
        assert len(ends) == len(set(ends))
