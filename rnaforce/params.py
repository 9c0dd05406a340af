import random
from dataclasses import asdict, dataclass, fields

NODE_STYLES = ("solid", "outline")
LINE_STYLES = ("solid", "dashed", "dotted")

# Names used by the browser viewer's parameter record, accepted as aliases.
_CAMEL_CASE_ALIASES = {
    "radius": "node_radius",
    "nodeRadius": "node_radius",
    "fontSize": "font_size",
    "backboneDist": "backbone_distance",
    "backboneDistance": "backbone_distance",
    "pairDist": "pair_distance",
    "pairDistance": "pair_distance",
    "charge": "charge_strength",
    "chargeStrength": "charge_strength",
    "linkStrength": "link_strength",
    "nodeStyle": "node_style",
    "backboneStyle": "backbone_style",
    "pairStyle": "pair_style",
    "backboneWidth": "backbone_width",
    "pairWidth": "pair_width",
    "showBackbone": "show_backbone",
}


@dataclass
class LayoutParams:
    """
    Physical and visual parameters of a structure diagram.

    The physics fields are mapped onto the force simulation by
    :func:`rnaforce.layout.apply_physics`; the remaining fields only affect
    drawing.
    """
    # Physics
    node_radius: float = 20.0
    backbone_distance: float = 40.0
    pair_distance: float = 40.0
    charge_strength: float = -300.0
    link_strength: float = 0.2

    # Display
    font_size: float = 20.0
    node_style: str = "solid"
    backbone_style: str = "solid"
    pair_style: str = "dashed"
    backbone_width: float = 3.0
    pair_width: float = 2.0
    show_backbone: bool = True

    @classmethod
    def from_dict(cls, data):
        """
        Builds a parameter record from a mapping such as a JSON payload.

        Both snake_case field names and the camelCase names of the browser viewer
        are accepted. Unknown keys raise, missing keys keep their default.

        :param data: Mapping of parameter names to values (dict or None).

        :raises ValueError: If a key is not a known parameter or a value fails validation.

        :returns: A validated parameter record (LayoutParams).
        """
        known = {f.name: f for f in fields(cls)}
        kwargs = {}
        for key, value in (data or {}).items():
            name = _CAMEL_CASE_ALIASES.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown layout parameter: '{key}'.")
            if known[name].type in (float, "float"):
                value = float(value)
            elif known[name].type in (bool, "bool") and isinstance(value, str):
                value = value.strip().lower() in ("1", "true", "yes", "on")
            kwargs[name] = value
        params = cls(**kwargs)
        params.validate()
        return params

    def to_dict(self) -> dict:
        return asdict(self)

    def validate(self):
        """
        Checks value ranges and style names.

        :raises ValueError: On a non-positive radius or distance, a negative font
                            size or line width, or an unknown style name.
        """
        for name in ("node_radius", "backbone_distance", "pair_distance"):
            if getattr(self, name) <= 0:
                raise ValueError(f"'{name}' must be positive, got {getattr(self, name)}.")
        for name in ("font_size", "backbone_width", "pair_width", "link_strength"):
            if getattr(self, name) < 0:
                raise ValueError(f"'{name}' cannot be negative, got {getattr(self, name)}.")
        if self.node_style not in NODE_STYLES:
            raise ValueError(f"Unknown node style '{self.node_style}'. Choose one of {', '.join(NODE_STYLES)}.")
        for name in ("backbone_style", "pair_style"):
            if getattr(self, name) not in LINE_STYLES:
                raise ValueError(f"Unknown line style '{getattr(self, name)}' for '{name}'. "
                                 f"Choose one of {', '.join(LINE_STYLES)}.")
        return self


PRESETS = {
    "hairpin": {
        "seq": "GGGGAAAACCCC",
        "struct": "((((....))))",
    },
    "trna": {
        # Yeast phenylalanine tRNA
        "seq": "GCGGAUUUAGCUCAGUUGGGAGAGCGCCAGACUGAAGAUCUGGAGGUCCUGUGUUCGAUCCACAGAAUUCGCACCA",
        "struct": "(((((((..((((........)))).(((((.......))))).....(((((.......))))))))))))....",
    },
    "pseudoknot": {
        "seq": "GGGGAAAAAAACCCCUUUUUUU",
        "struct": "((((...[[[[))))...]]]]",
    },
}


def get_preset(name):
    """
    Returns the ``(sequence, structure)`` of a named example.

    :param name: One of the keys of ``PRESETS`` (str).

    :raises ValueError: If the preset does not exist.

    :returns: A tuple of sequence and dot-bracket structure (tuple of str).
    """
    try:
        preset = PRESETS[name]
    except KeyError:
        raise ValueError(f"Unknown preset '{name}'. Available: {', '.join(sorted(PRESETS))}.")
    return preset["seq"], preset["struct"]


def random_structure(length=40, rng=None):
    """
    Generates a random AUGC sequence with a random nested structure.

    Positions open a pair with probability 0.4 (never in the last four
    positions) and close the most recent open pair with probability 0.5 once it
    is at least three positions away, which keeps hairpin loops at three or more
    unpaired bases. Openers still unclosed at the end are turned back into '.'.

    :param length: Number of nucleotides (int).
    :param rng: Source of randomness, ``random`` module API (random.Random or None).

    :returns: A tuple ``(sequence, structure)`` whose brackets are all balanced (tuple of str).
    """
    rng = rng or random.Random()
    bases = "AUGC"
    sequence = "".join(rng.choice(bases) for _ in range(length))

    structure = ["."] * length
    stack = []
    for i in range(length):
        if rng.random() > 0.6 and i < length - 4:
            stack.append(i)
            structure[i] = "("
        elif stack and rng.random() > 0.5 and i > stack[-1] + 3:
            stack.pop()
            structure[i] = ")"
    while stack:
        structure[stack.pop()] = "."
    return sequence, "".join(structure)
