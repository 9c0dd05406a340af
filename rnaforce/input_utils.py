import re
from io import StringIO

from Bio import SeqIO

# RNAfold style energy annotation at the end of a structure line, e.g. " (-3.40)"
_ENERGY_SUFFIX = re.compile(r"\s+\(\s*[-+]?\d+(\.\d+)?\s*\)\s*$")


def _read_text(uploaded_file):
    content = uploaded_file.read()
    if isinstance(content, bytes):
        content = content.decode("utf-8")
    return content.strip()


def parse_dot_bracket_file(uploaded_file):
    """
    Reads a sequence and its structure from a dot-bracket (.dbn / .fold) file.

    The expected layout is an optional ``>name`` header line, then the sequence
    and then the structure, the way RNAfold writes them. An energy annotation
    after the structure (``((...)) (-1.20)``) is dropped. A file with a sequence
    but no structure line is accepted and returns an empty structure, which the
    parser treats as fully unpaired.

    :param uploaded_file: An object with a ``read()`` method returning text or bytes,
                          such as an open file or a Streamlit upload.

    :raises ValueError: If the file is empty or holds no sequence line.

    :returns: A tuple ``(name, sequence, structure)``; name is None without a header (tuple).
    """
    content = _read_text(uploaded_file)
    if not content:
        raise ValueError("The uploaded file is empty.")

    name = None
    lines = []
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith(">"):
            if name is None and not lines:
                name = line[1:].strip() or None
                continue
            # A second record starts, only the first one is used
            break
        lines.append(line)

    if not lines:
        raise ValueError("The file does not contain a sequence line.")

    sequence = lines[0]
    structure = _ENERGY_SUFFIX.sub("", lines[1]) if len(lines) > 1 else ""
    return name, sequence, structure


def read_fasta_sequence(uploaded_file):
    """
    Reads the first record of a FASTA file with Biopython.

    :param uploaded_file: An object with a ``read()`` method returning text or bytes.

    :raises ValueError: If the file is empty or is not valid FASTA.

    :returns: A tuple ``(record_id, sequence)`` (tuple of str).
    """
    content = _read_text(uploaded_file)
    if not content:
        raise ValueError("The uploaded file is empty.")

    records = list(SeqIO.parse(StringIO(content), "fasta"))
    if not records or not len(records[0].seq):
        raise ValueError("The file is not a valid FASTA file.")
    return records[0].id, str(records[0].seq)
