import io
import json
import os
import zipfile

from rnaforce.drawing import export_structure


def layout_to_dict(nodes, edges, params=None, sequence=None, structure=None):
    """
    Serialises a laid out structure into plain JSON-compatible data.

    :returns: A dict with ``nodes``, ``edges`` and, when given, ``params``,
              ``sequence`` and ``structure`` (dict).
    """
    data = {
        "nodes": [node.to_dict() for node in nodes],
        "edges": [edge.to_dict() for edge in edges],
    }
    if params is not None:
        data["params"] = params.to_dict()
    if sequence is not None:
        data["sequence"] = sequence
    if structure is not None:
        data["structure"] = structure
    return data


def write_layout_json(path, nodes, edges, params=None, sequence=None, structure=None):
    """Writes :func:`layout_to_dict` output to ``path``."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w") as f:
        json.dump(layout_to_dict(nodes, edges, params, sequence, structure), f, indent=2)
    return path


def save_structure_bundle(nodes, edges, params, output_dir, tag="rna_structure",
                          sequence=None, structure=None):
    """
    Saves the layout JSON together with SVG and PNG drawings in one folder.

    :returns: The list of written file paths (list of str).
    """
    os.makedirs(output_dir, exist_ok=True)
    written = [write_layout_json(os.path.join(output_dir, f"{tag}.json"), nodes, edges, params,
                                 sequence, structure)]
    for fmt in ("svg", "png"):
        written.append(export_structure(nodes, edges, os.path.join(output_dir, f"{tag}.{fmt}"), params, fmt))
    return written


def create_zip_archive(source_dir):
    """
    Compresses an entire directory into a ZIP archive and returns its binary content.

    Files are stored relative to the parent of ``source_dir``, so the archive
    unpacks into a folder with the same name.

    :param source_dir: The path to the directory to be compressed. (str)
    :return: The binary content of the created ZIP archive. (bytes)
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zipf:
        for root, dirs, files in os.walk(source_dir):
            for file in sorted(files):
                full_path = os.path.join(root, file)
                relative_path = os.path.relpath(full_path, os.path.join(source_dir, ".."))
                zipf.write(full_path, relative_path)
    buffer.seek(0)
    return buffer.getvalue()
