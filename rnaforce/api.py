from flask import Flask, request, jsonify
import sys
import os

from rnaforce.io_tools import layout_to_dict
from rnaforce.layout import DEFAULT_HEIGHT, DEFAULT_WIDTH, layout_structure
from rnaforce.params import PRESETS, LayoutParams
from rnaforce.structure import parse_structure

app = Flask(__name__)


def _read_input(payload):
    """
    Extracts sequence and structure from a request payload.

    :returns: A tuple ``(sequence, structure, error)``; error is None when the input is usable.
    """
    if not isinstance(payload, dict) or 'sequence' not in payload:
        return None, None, "Invalid request. Please provide a JSON object with a 'sequence' key."

    sequence = payload['sequence']
    structure = payload.get('structure', '')
    if not isinstance(sequence, str):
        return None, None, "The 'sequence' must be a string."
    if not isinstance(structure, str):
        return None, None, "The 'structure' must be a string."
    return sequence, structure, None


@app.route('/parse_structure', methods=['POST'])
def parse_structure_endpoint():
    """
    API endpoint returning the nodes and edges of a dot-bracket structure.

    Example JSON payload:
    {
      "sequence": "GGGGAAAACCCC",
      "structure": "((((....))))"
    }
    """
    sequence, structure, error = _read_input(request.get_json(silent=True))
    if error:
        return jsonify({"error": error}), 400

    try:
        nodes, edges = parse_structure(sequence, structure)
        return jsonify(layout_to_dict(nodes, edges)), 200

    except Exception as e:
        print(f"An error occurred: {e}", file=sys.stderr)
        return jsonify({"error": "An internal server error occurred."}), 500


@app.route('/layout', methods=['POST'])
def layout_endpoint():
    """
    API endpoint running the force layout and returning node positions.

    Example JSON payload:
    {
      "sequence": "GGGGAAAAAAACCCCUUUUUUU",
      "structure": "((((...[[[[))))...]]]]",
      "params": {"pair_distance": 30, "charge_strength": -200},
      "width": 800,
      "height": 600,
      "pinned": {"0": [100, 300]}
    }
    """
    payload = request.get_json(silent=True)
    sequence, structure, error = _read_input(payload)
    if error:
        return jsonify({"error": error}), 400

    try:
        params = LayoutParams.from_dict(payload.get('params'))
        width = float(payload.get('width', DEFAULT_WIDTH))
        height = float(payload.get('height', DEFAULT_HEIGHT))
        max_ticks = int(payload.get('max_ticks', 1000))
        pinned = {int(k): (float(x), float(y)) for k, (x, y) in (payload.get('pinned') or {}).items()}
    except (AttributeError, TypeError, ValueError) as e:
        return jsonify({"error": str(e)}), 400

    try:
        messages = []
        nodes, edges = layout_structure(
            sequence, structure, params,
            width=width,
            height=height,
            max_ticks=max_ticks,
            log_func=messages.append,
            pinned=pinned,
        )
        response_data = layout_to_dict(nodes, edges, params, sequence, structure)
        response_data["log"] = messages
        return jsonify(response_data), 200

    except ValueError as e:
        # Input the layout refuses, e.g. a sequence above MAX_LAYOUT_LENGTH
        return jsonify({"error": str(e)}), 400

    except Exception as e:
        print(f"An error occurred: {e}", file=sys.stderr)
        return jsonify({"error": "An internal server error occurred."}), 500


@app.route('/presets', methods=['GET'])
def presets_endpoint():
    """Lists the built-in example structures."""
    return jsonify(PRESETS), 200


if __name__ == '__main__':
    # Get the port from the environment, defaulting to 5000.
    port = int(os.environ.get('PORT', 5000))
    app.run(host='0.0.0.0', port=port)
