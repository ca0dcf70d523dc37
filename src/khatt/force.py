"""Relaxation of mark positions.

Every glyph of a page is a particle. Bases are pulled toward their nominal
position, marks toward the position of their base (as it is being moved)
plus their nominal offset from it. The simulation follows d3-force: alpha
decays toward zero, forces add to the velocities, velocities decay and move
the particles.
"""

import logging

logger = logging.getLogger(__name__)

ITERATIONS = 300
# 1 - 0.001 ** (1 / 300), alpha reaches 0.001 after 300 ticks.
ALPHA_DECAY = 0.0228
VELOCITY_DECAY = 0.4
BASE_STRENGTH = 0.1
MARK_STRENGTH = 1


class ForceNode:
    """Class representing one glyph particle."""

    __slots__ = ("x", "y", "vx", "vy", "target_x", "target_y", "is_mark",
                 "base", "x_offset", "y_offset")

    def __init__(self, target_x, target_y, is_mark=False, base=None,
                 x_offset=0, y_offset=0):
        self.x = 0
        self.y = 0
        self.vx = 0
        self.vy = 0
        self.target_x = target_x
        self.target_y = target_y
        self.is_mark = is_mark
        # Index of the base node in the simulation, for marks.
        self.base = base
        self.x_offset = x_offset
        self.y_offset = y_offset

    def __repr__(self):
        return "ForceNode(%.1f, %.1f%s)" % (self.x, self.y,
                                           ", mark" if self.is_mark else "")


def base_force(nodes, alpha, strength=BASE_STRENGTH):
    for node in nodes:
        if not node.is_mark:
            node.vx += (node.target_x - node.x) * strength * alpha
            node.vy += (node.target_y - node.y) * strength * alpha


def mark_force(nodes, alpha, strength=MARK_STRENGTH):
    for node in nodes:
        if not node.is_mark or node.base is None:
            continue
        base = nodes[node.base]
        target_x = base.x + base.vx + (node.target_x - base.target_x)
        target_y = base.y + base.vy + (node.target_y - base.target_y)
        node.vx += (target_x - node.x) * strength * alpha
        node.vy += (target_y - node.y) * strength * alpha


class ForceSimulation:
    """Class holding the nodes of one page and running the simulation."""

    def __init__(self, alpha_decay=ALPHA_DECAY,
                 velocity_decay=VELOCITY_DECAY):
        self.nodes = []
        self.alpha = 1
        self.alpha_decay = alpha_decay
        self.velocity_decay = velocity_decay
        self.forces = [base_force, mark_force]

    def add(self, target_x, target_y, is_mark=False, base=None, x_offset=0,
            y_offset=0):
        """Adds a node and returns its index."""

        if base is not None and not 0 <= base < len(self.nodes):
            raise IndexError("Base node %d not in simulation" % base)
        self.nodes.append(ForceNode(target_x, target_y, is_mark, base,
                                    x_offset, y_offset))
        return len(self.nodes) - 1

    def __getitem__(self, index):
        return self.nodes[index]

    def __len__(self):
        return len(self.nodes)

    def tick(self):
        self.alpha += (0 - self.alpha) * self.alpha_decay
        for force in self.forces:
            force(self.nodes, self.alpha)
        keep = 1 - self.velocity_decay
        for node in self.nodes:
            node.vx *= keep
            node.x += node.vx
            node.vy *= keep
            node.y += node.vy

    def run(self, iterations=ITERATIONS):
        # No convergence test, the cost only depends on the node count.
        for _ in range(iterations):
            self.tick()
        logger.debug("Relaxed %d nodes in %d ticks", len(self.nodes),
                     iterations)
        return self

    def clear(self):
        self.nodes = []
        self.alpha = 1

    def mark_offset(self, index):
        """Returns the solved offset of a mark from its base."""

        node = self.nodes[index]
        base = self.nodes[node.base]
        return node.x - base.x, node.y - base.y
