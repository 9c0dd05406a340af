import io
import os

import matplotlib.pyplot as plt
from matplotlib import patheffects
from matplotlib.collections import LineCollection
from matplotlib.patches import Circle
from PIL import Image

from rnaforce.params import LayoutParams
from rnaforce.structure import BACKBONE, base_category

BASE_COLOURS = {
    "A": "#ef4444",  # red
    "U": "#3b82f6",  # blue
    "G": "#22c55e",  # green
    "C": "#eab308",  # yellow
    "T": "#3b82f6",  # DNA T, same as U
    "default": "#94a3b8",
}

LINE_COLOURS = {
    "backbone": "#94a3b8",
    "pair": "#64748b",
}

DASH_PATTERNS = {
    "solid": "solid",
    "dashed": (0, (5, 5)),
    "dotted": (0, (1, 5)),
}

OUTLINE_TEXT_COLOUR = "#334155"
PNG_SCALE = 2
PADDING = 10
EXPORT_FORMATS = ("svg", "png")


def base_colour(base):
    return BASE_COLOURS[base_category(base)]


def _edge_segments(nodes, edges):
    return [((nodes[e.source].x, nodes[e.source].y), (nodes[e.target].x, nodes[e.target].y)) for e in edges]


def draw_structure(nodes, edges, params=None, ax=None, title=None):
    """
    Draws a laid out structure onto a matplotlib axis.

    Backbone and pair edges are drawn first as line collections with their own
    width and dash pattern, then one circle per nucleotide coloured by base and a
    label with the base letter. With ``node_style == "outline"`` circles are
    white with a coloured border, otherwise they are filled with the base colour
    and labelled in white. Backbone edges are skipped when ``show_backbone`` is
    off, and labels are skipped when ``font_size`` is 0.

    The y axis is inverted so the picture matches screen coordinates, where y
    grows downwards.

    :param nodes: Nodes with positions, as returned by the layout (list of Node).
    :param edges: Edges of the structure (list of Edge).
    :param params: Display parameters; defaults when None (LayoutParams or None).
    :param ax: Axis to draw on; a new figure is created when None (matplotlib.axes.Axes or None).
    :param title: Optional title above the diagram (str or None).

    :returns: The figure that holds the drawing (matplotlib.figure.Figure).
    """
    params = params or LayoutParams()
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 6))
    else:
        fig = ax.figure

    outline = params.node_style == "outline"

    for edge_type, style, width in (
        ("backbone", params.backbone_style, params.backbone_width),
        ("pair", params.pair_style, params.pair_width),
    ):
        if edge_type == BACKBONE and not params.show_backbone:
            continue
        selected = [e for e in edges if e.type == edge_type]
        if not selected:
            continue
        lines = LineCollection(
            _edge_segments(nodes, selected),
            colors=LINE_COLOURS[edge_type],
            linewidths=width,
            linestyles=DASH_PATTERNS[style],
            capstyle="round" if style == "dotted" else "butt",
            zorder=1,
        )
        ax.add_collection(lines)

    shadow = [patheffects.withStroke(linewidth=2, foreground=(0, 0, 0, 0.45))]
    for node in nodes:
        colour = base_colour(node.base)
        ax.add_patch(Circle(
            (node.x, node.y),
            params.node_radius,
            facecolor="#ffffff" if outline else colour,
            edgecolor=colour if outline else "#ffffff",
            linewidth=2.5 if outline else 2,
            zorder=2,
        ))
        if params.font_size > 0:
            ax.text(
                node.x, node.y, node.base,
                ha="center", va="center",
                fontsize=params.font_size * 0.75,  # px to pt
                color=OUTLINE_TEXT_COLOUR if outline else "white",
                fontweight="bold",
                path_effects=None if outline else shadow,
                zorder=3,
            )

    if nodes:
        margin = params.node_radius + PADDING
        xs = [node.x for node in nodes]
        ys = [node.y for node in nodes]
        ax.set_xlim(min(xs) - margin, max(xs) + margin)
        ax.set_ylim(max(ys) + margin, min(ys) - margin)
    ax.set_aspect("equal")
    ax.axis("off")
    if title:
        ax.set_title(title)
    return fig


def render_to_bytes(nodes, edges, params=None, fmt="svg", title=None):
    """
    Renders the diagram and returns the encoded file content.

    PNG output is drawn on a white background at twice the normal resolution.

    :param fmt: ``"svg"`` or ``"png"`` (str).

    :raises ValueError: On an unsupported format.

    :returns: The encoded image (bytes).
    """
    fmt = fmt.lower()
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format '{fmt}'. Choose one of {', '.join(EXPORT_FORMATS)}.")

    fig = draw_structure(nodes, edges, params, title=title)
    buffer = io.BytesIO()
    try:
        fig.savefig(buffer, format=fmt, facecolor="white", bbox_inches="tight",
                    dpi=fig.dpi * PNG_SCALE if fmt == "png" else fig.dpi)
    finally:
        plt.close(fig)
    return buffer.getvalue()


def export_structure(nodes, edges, path, params=None, fmt=None, title=None):
    """
    Writes the diagram to ``path``. The format defaults to the file extension.

    :returns: The path that was written (str).
    """
    fmt = fmt or os.path.splitext(path)[1].lstrip(".") or "svg"
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "wb") as f:
        f.write(render_to_bytes(nodes, edges, params, fmt, title))
    return path


def open_png(path):
    """
    Opens an exported PNG diagram.

    :returns: The image, or None if it could not be read (PIL.Image.Image or None).
    """
    try:
        return Image.open(path)
    except (OSError, ValueError) as e:
        print(f"Could not open the generated image: {e}")
        return None
