import numpy as np
from scipy.spatial import cKDTree

ALPHA_MIN = 0.001
# Decay that takes alpha from 1 to ALPHA_MIN in about 300 ticks
ALPHA_DECAY = 1 - ALPHA_MIN ** (1 / 300)
VELOCITY_DECAY = 0.4
LINK_ITERATIONS = 10
DISTANCE_MIN = 1.0
DRAG_ALPHA_TARGET = 0.3


def _disjoint_batches(links):
    """
    Greedily groups link indices so that no two links in a group share a node.

    :param links: Array of ``(source, target)`` rows (numpy.ndarray).

    :returns: Index arrays, one per group, in first-fit order (list of numpy.ndarray).
    """
    batches = []
    for k, (source, target) in enumerate(links.tolist()):
        for members, used in batches:
            if source not in used and target not in used:
                members.append(k)
                used.update((source, target))
                break
        else:
            batches.append(([k], {source, target}))
    return [np.array(members, dtype=int) for members, _ in batches]


class ForceSimulation:
    """
    Velocity-based force-directed layout in the style of d3-force.

    Every tick cools ``alpha`` towards ``alpha_target``, applies the link,
    many-body, centering and collision forces to the node velocities, and then
    moves every node that is not pinned. Positions are written back to the
    ``Node`` objects after each tick and the registered tick callbacks are
    called with the simulation.

    The simulation knows nothing about RNA: the layout adapter decides what the
    per-link distances, strengths and the global forces are.
    """

    def __init__(self, nodes=None, seed=0):
        self.alpha = 1.0
        self.alpha_min = ALPHA_MIN
        self.alpha_decay = ALPHA_DECAY
        self.alpha_target = 0.0
        self.velocity_decay = VELOCITY_DECAY
        self.link_iterations = LINK_ITERATIONS

        self.repulsion = 0.0
        self.collision_radius = 0.0
        self.center = None

        self._rng = np.random.default_rng(seed)
        self._tick_callbacks = []
        self._links = np.zeros((0, 2), dtype=int)
        self._distances = np.zeros(0)
        self._strengths = np.zeros(0)
        self._bias = np.zeros(0)
        self._link_batches = []
        self.ticks = 0

        self.set_nodes(nodes or [])

    # ------------------------------------------------------------------ subject

    def set_nodes(self, nodes):
        """
        Replaces the simulated nodes.

        Velocities start at zero and links are cleared, since they refer to the
        previous node ids. Nodes already marked as pinned keep their position.
        """
        self.nodes = list(nodes)
        n = len(self.nodes)
        self.positions = np.array([[node.x, node.y] for node in self.nodes], dtype=float).reshape(n, 2)
        self.velocities = np.zeros((n, 2))
        self.pinned = np.array([node.pinned for node in self.nodes], dtype=bool)
        self.fixed = self.positions.copy()
        self.set_edges([], [], [])
        return self

    def set_edges(self, links, distances, strengths):
        """
        Sets the springs of the simulation.

        :param links: ``(source_id, target_id)`` pairs (iterable of tuple).
        :param distances: Rest length of every link (sequence of float).
        :param strengths: Spring strength of every link, 0 to 1 (sequence of float).
        """
        links = np.asarray(list(links), dtype=int).reshape(-1, 2)
        distances = np.asarray(list(distances), dtype=float)
        strengths = np.asarray(list(strengths), dtype=float)
        if not (len(links) == len(distances) == len(strengths)):
            raise ValueError("links, distances and strengths must have the same length.")
        if len(links) and (links.min() < 0 or links.max() >= len(self.nodes)):
            raise ValueError("A link refers to a node that is not in the simulation.")

        # Each end of a link moves in proportion to the degree of the other end
        degree = np.bincount(links.ravel(), minlength=len(self.nodes)).astype(float)
        if len(links):
            self._bias = degree[links[:, 0]] / (degree[links[:, 0]] + degree[links[:, 1]])
        else:
            self._bias = np.zeros(0)
        self._links = links
        self._distances = distances
        self._strengths = strengths
        self._link_batches = _disjoint_batches(links)
        return self

    def set_repulsion(self, strength):
        """Many-body strength; negative values push nodes apart."""
        self.repulsion = float(strength)
        return self

    def set_collision_radius(self, radius):
        self.collision_radius = float(radius)
        return self

    def set_center(self, x, y):
        self.center = (float(x), float(y))
        return self

    def on_tick(self, callback):
        """Registers ``callback(simulation)``, called after every tick."""
        self._tick_callbacks.append(callback)
        return self

    # ----------------------------------------------------------------- control

    def restart(self, alpha=None):
        """Reheats the simulation so it settles again."""
        if alpha is not None:
            self.alpha = float(alpha)
        return self

    @property
    def converged(self):
        return self.alpha < self.alpha_min

    def tick(self):
        """Advances the layout by one step."""
        self.alpha += (self.alpha_target - self.alpha) * self.alpha_decay
        if len(self.nodes):
            self._apply_links()
            self._apply_many_body()
            self._apply_center()
            self._apply_collision()

            free = ~self.pinned
            self.velocities[free] *= 1 - self.velocity_decay
            self.positions[free] += self.velocities[free]
            self.positions[self.pinned] = self.fixed[self.pinned]
            self.velocities[self.pinned] = 0.0
            self._write_back()

        self.ticks += 1
        for callback in self._tick_callbacks:
            callback(self)
        return self

    def run(self, max_ticks=1000):
        """
        Ticks until the energy drops below ``alpha_min`` or ``max_ticks`` is reached.

        :returns: The number of ticks performed (int).
        """
        done = 0
        while done < max_ticks and not self.converged:
            self.tick()
            done += 1
        return done

    # -------------------------------------------------------------- user input

    def pin(self, node_id, x=None, y=None):
        """Fixes a node at ``(x, y)`` (its current position when omitted)."""
        x = float(self.positions[node_id, 0] if x is None else x)
        y = float(self.positions[node_id, 1] if y is None else y)
        self.pinned[node_id] = True
        self.fixed[node_id] = (x, y)
        self.positions[node_id] = (x, y)
        self.velocities[node_id] = 0.0
        node = self.nodes[node_id]
        node.pinned, node.x, node.y = True, x, y
        return self

    def unpin(self, node_id):
        """Gives the position of a node back to the simulation."""
        self.pinned[node_id] = False
        self.nodes[node_id].pinned = False
        return self

    def drag_start(self, node_id):
        self.alpha_target = DRAG_ALPHA_TARGET
        return self.pin(node_id)

    def drag_to(self, node_id, x, y):
        return self.pin(node_id, x, y)

    def drag_end(self, node_id):
        self.alpha_target = 0.0
        return self.unpin(node_id)

    # ------------------------------------------------------------------ forces

    def _jiggle(self, values):
        zero = values == 0
        if np.any(zero):
            values[zero] = (self._rng.random(np.count_nonzero(zero)) - 0.5) * 1e-6
        return values

    def _apply_links(self):
        for _ in range(self.link_iterations):
            # Links of one batch share no node, so a batch can be updated at once.
            # Batches run one after the other: a deterministic reordering of the
            # link-by-link sweep, not the same visiting order.
            for batch in self._link_batches:
                src, dst = self._links[batch, 0], self._links[batch, 1]
                delta = (self.positions[dst] + self.velocities[dst]) - (self.positions[src] + self.velocities[src])
                self._jiggle(delta[:, 0])
                self._jiggle(delta[:, 1])
                length = np.hypot(delta[:, 0], delta[:, 1])
                scale = (length - self._distances[batch]) / length * self.alpha * self._strengths[batch]
                delta *= scale[:, None]
                bias = self._bias[batch][:, None]
                self.velocities[dst] -= delta * bias
                self.velocities[src] += delta * (1 - bias)

    def _apply_many_body(self):
        if self.repulsion == 0 or len(self.nodes) < 2:
            return
        delta = self.positions[None, :, :] - self.positions[:, None, :]
        self._jiggle(delta[..., 0])
        self._jiggle(delta[..., 1])
        dist2 = np.einsum("ijk,ijk->ij", delta, delta)
        close = dist2 < DISTANCE_MIN ** 2
        dist2[close] = np.sqrt(DISTANCE_MIN ** 2 * dist2[close])
        np.fill_diagonal(dist2, np.inf)
        weight = self.repulsion * self.alpha / dist2
        self.velocities += np.einsum("ij,ijk->ik", weight, delta)

    def _apply_center(self):
        if self.center is None:
            return
        shift = self.positions.mean(axis=0) - np.asarray(self.center)
        self.positions -= shift

    def _apply_collision(self):
        if self.collision_radius <= 0 or len(self.nodes) < 2:
            return
        ahead = self.positions + self.velocities
        reach = 2 * self.collision_radius
        pairs = cKDTree(ahead).query_pairs(reach, output_type="ndarray")
        if not len(pairs):
            return
        i, j = pairs[:, 0], pairs[:, 1]
        delta = ahead[i] - ahead[j]
        self._jiggle(delta[:, 0])
        length = np.hypot(delta[:, 0], delta[:, 1])
        overlap = length < reach
        i, j, delta, length = i[overlap], j[overlap], delta[overlap], length[overlap]
        # Equal radii: each node takes half of the correction
        delta *= ((reach - length) / length)[:, None] * 0.5
        np.add.at(self.velocities, i, delta)
        np.add.at(self.velocities, j, -delta)

    def _write_back(self):
        for node, (x, y) in zip(self.nodes, self.positions):
            node.x = float(x)
            node.y = float(y)
