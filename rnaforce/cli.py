import argparse
import json
import random
import sys
import traceback

from rnaforce.drawing import export_structure
from rnaforce.input_utils import parse_dot_bracket_file, read_fasta_sequence
from rnaforce.io_tools import layout_to_dict, write_layout_json
from rnaforce.layout import DEFAULT_HEIGHT, DEFAULT_WIDTH, layout_structure
from rnaforce.params import LINE_STYLES, NODE_STYLES, PRESETS, LayoutParams, get_preset, random_structure
from rnaforce.structure import count_pairs_by_family, parse_structure


# A simple function to log messages to the console.
def log_func(message):
    print(message, file=sys.stderr)


def add_input_arguments(parser):
    """Options that select the sequence and structure to work on."""
    parser.add_argument('--seq', help='The RNA sequence.')
    parser.add_argument('--struct', default='', help='The structure in dot-bracket notation.')
    parser.add_argument('--preset', choices=sorted(PRESETS), help='Use one of the built-in examples.')
    parser.add_argument('--dbn_file', help='A dot-bracket file: optional >name line, sequence, structure.')
    parser.add_argument('--fasta', help='A FASTA file; the first record is used as sequence.')


def add_layout_arguments(parser):
    """Physics and display parameters, defaults taken from LayoutParams."""
    defaults = LayoutParams()
    parser.add_argument('--radius', type=float, default=defaults.node_radius, help='Node radius.')
    parser.add_argument('--backbone_dist', type=float, default=defaults.backbone_distance,
                        help='Target length of backbone edges.')
    parser.add_argument('--pair_dist', type=float, default=defaults.pair_distance,
                        help='Target length of base pair edges.')
    parser.add_argument('--charge', type=float, default=defaults.charge_strength,
                        help='Many-body strength, negative values repel.')
    parser.add_argument('--link_strength', type=float, default=defaults.link_strength,
                        help='Spring strength of backbone edges (pairs use 80%%).')
    parser.add_argument('--font_size', type=float, default=defaults.font_size, help='Label size, 0 hides labels.')
    parser.add_argument('--node_style', choices=NODE_STYLES, default=defaults.node_style)
    parser.add_argument('--backbone_style', choices=LINE_STYLES, default=defaults.backbone_style)
    parser.add_argument('--pair_style', choices=LINE_STYLES, default=defaults.pair_style)
    parser.add_argument('--backbone_width', type=float, default=defaults.backbone_width)
    parser.add_argument('--pair_width', type=float, default=defaults.pair_width)
    parser.add_argument('--hide_backbone', action='store_true', help='Do not draw backbone edges.')
    parser.add_argument('--width', type=float, default=DEFAULT_WIDTH, help='Width of the drawing area.')
    parser.add_argument('--height', type=float, default=DEFAULT_HEIGHT, help='Height of the drawing area.')
    parser.add_argument('--max_ticks', type=int, default=1000, help='Maximum number of simulation steps.')
    parser.add_argument(
        '--pin',
        nargs=3,
        action='append',
        metavar=('POSITION', 'X', 'Y'),
        default=[],
        help='Pin a nucleotide (1-based position) at X Y. Can be repeated.'
    )


def resolve_input(args):
    """
    Works out the sequence and structure from the input options.

    :raises ValueError: If no input option was given.

    :returns: A tuple ``(sequence, structure)`` (tuple of str).
    """
    if args.preset:
        return get_preset(args.preset)
    if args.dbn_file:
        with open(args.dbn_file, 'rb') as f:
            _, sequence, structure = parse_dot_bracket_file(f)
        return sequence, args.struct or structure
    if args.fasta:
        with open(args.fasta, 'rb') as f:
            _, sequence = read_fasta_sequence(f)
        return sequence, args.struct
    if args.seq:
        return args.seq, args.struct
    raise ValueError("Provide an input with --seq, --preset, --dbn_file or --fasta.")


def params_from_args(args):
    params = LayoutParams(
        node_radius=args.radius,
        backbone_distance=args.backbone_dist,
        pair_distance=args.pair_dist,
        charge_strength=args.charge,
        link_strength=args.link_strength,
        font_size=args.font_size,
        node_style=args.node_style,
        backbone_style=args.backbone_style,
        pair_style=args.pair_style,
        backbone_width=args.backbone_width,
        pair_width=args.pair_width,
        show_backbone=not args.hide_backbone,
    )
    return params.validate()


def pins_from_args(args):
    """Converts ``--pin POSITION X Y`` options (1-based) into ``{node_id: (x, y)}``."""
    return {int(position) - 1: (float(x), float(y)) for position, x, y in args.pin}


def run_layout(args):
    sequence, structure = resolve_input(args)
    params = params_from_args(args)
    nodes, edges = layout_structure(
        sequence, structure, params,
        width=args.width,
        height=args.height,
        max_ticks=args.max_ticks,
        log_func=log_func,
        pinned=pins_from_args(args),
    )
    return sequence, structure, params, nodes, edges


def build_parser():
    parser = argparse.ArgumentParser(description='RNAFORCE: force-directed RNA secondary structure diagrams.')

    # Configures all available subcommands.
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    ## Subcommand: `parse`
    parse_parser = subparsers.add_parser('parse', help='Prints the nodes and edges of a structure as JSON.')
    add_input_arguments(parse_parser)

    ## Subcommand: `layout`
    layout_parser = subparsers.add_parser('layout', help='Runs the force layout and saves node positions.')
    add_input_arguments(layout_parser)
    add_layout_arguments(layout_parser)
    layout_parser.add_argument('--output', default='outputs/rna_structure.json', help='The JSON file to write.')

    ## Subcommand: `plot`
    plot_parser = subparsers.add_parser('plot', help='Draws the structure diagram to an SVG or PNG file.')
    add_input_arguments(plot_parser)
    add_layout_arguments(plot_parser)
    plot_parser.add_argument('--output', default='outputs/rna_structure.svg', help='The image file to write.')
    plot_parser.add_argument('--format', choices=('svg', 'png'), default=None,
                             help='Image format, taken from the file extension by default.')
    plot_parser.add_argument('--title', default=None, help='Optional title for the diagram.')

    ## Subcommand: `presets`
    subparsers.add_parser('presets', help='Lists the built-in example structures.')

    ## Subcommand: `random`
    random_parser = subparsers.add_parser('random', help='Generates a random sequence with a nested structure.')
    random_parser.add_argument('--length', type=int, default=40, help='Number of nucleotides.')
    random_parser.add_argument('--seed', type=int, default=None, help='Seed for reproducible output.')

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        if args.command == 'parse':
            sequence, structure = resolve_input(args)
            nodes, edges = parse_structure(sequence, structure)
            print(json.dumps(layout_to_dict(nodes, edges), indent=2))
            pairs = count_pairs_by_family(edges)
            per_family = ', '.join(f"{family}: {count}" for family, count in pairs.items() if count)
            log_func(f"✅ {len(nodes)} nucleotides, {sum(pairs.values())} base pairs"
                     + (f" ({per_family})." if per_family else "."))

        elif args.command == 'layout':
            sequence, structure, params, nodes, edges = run_layout(args)
            write_layout_json(args.output, nodes, edges, params, sequence, structure)
            print(f"✅ Layout saved to '{args.output}'.")

        elif args.command == 'plot':
            sequence, structure, params, nodes, edges = run_layout(args)
            export_structure(nodes, edges, args.output, params, fmt=args.format, title=args.title)
            print(f"✅ The diagram has been saved to '{args.output}'.")

        elif args.command == 'presets':
            for name in sorted(PRESETS):
                print(f"{name}\n  {PRESETS[name]['seq']}\n  {PRESETS[name]['struct']}")

        elif args.command == 'random':
            rng = random.Random(args.seed) if args.seed is not None else None
            sequence, structure = random_structure(args.length, rng)
            print(sequence)
            print(structure)

    except Exception as e:
        print(f"❌ An error occurred in the '{args.command}' command: {e}", file=sys.stderr)
        traceback.print_exc()
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
