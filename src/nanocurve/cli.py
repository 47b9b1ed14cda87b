"""Command-line front end: measure and discretize curve descriptor files.

Usage::

    python -m nanocurve length curve.json
    python -m nanocurve discretize curve.json --params dna.yaml -o points.json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from nanocurve.config import DEFAULT_SETTINGS, load_helix_parameters, load_settings
from nanocurve.errors import CurveError
from nanocurve.instantiation import InstantiatedCurveDescriptor
from nanocurve.io.descriptor_json import load_descriptor
from nanocurve.parameters import GEARY_2014_DNA

logger = logging.getLogger("nanocurve.cli")


def _load(args):
    descriptor, stored_params = load_descriptor(args.file)
    params = stored_params or GEARY_2014_DNA
    if getattr(args, "params", None):
        params = load_helix_parameters(args.params)
    settings = DEFAULT_SETTINGS
    if getattr(args, "settings", None):
        settings = load_settings(args.settings)
    inst = InstantiatedCurveDescriptor.try_instantiate(descriptor)
    if inst is None:
        raise CurveError(f"{descriptor.kind} curves reference design grids or paths and cannot be built from a file")
    return inst, params, settings


def cmd_length(args) -> int:
    inst, params, _ = _load(args)
    print(f"{inst.try_length(params):.6f}")
    return 0


def cmd_discretize(args) -> int:
    inst, params, settings = _load(args)
    curve = inst.make_curve(params, settings=settings)
    print(f"Curve: {inst.source.kind}")
    print(f"Points: {curve.nb_points()} ({curve.nucl_t0} before t = 0)")
    print(f"Length: {curve.length():.6f} nm")
    if curve.nucl_pos_full_turn is not None:
        print(f"Nucleotides per period: {curve.nucl_pos_full_turn:.6f}")
    if args.output:
        doc = {
            "kind": inst.source.kind,
            "nucl_t0": curve.nucl_t0,
            "times": [float(t) for t in curve.t_nucl],
            "axis": [[float(c) for c in p] for p in curve.positions_forward],
        }
        out = Path(args.output)
        out.write_text(json.dumps(doc, indent=2) + "\n", encoding="utf-8")
        print(f"Axis positions written to: {out}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="python -m nanocurve",
        description="Measure and discretize nanocurve descriptors",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug messages")
    subparsers = parser.add_subparsers(dest="action", required=True)

    length_parser = subparsers.add_parser("length", help="Print the length of a curve in nm")
    length_parser.add_argument("file", help="Descriptor JSON file")
    length_parser.add_argument("--params", metavar="YAML", help="Helix parameter file")

    disc_parser = subparsers.add_parser("discretize", help="Discretize a curve into nucleotides")
    disc_parser.add_argument("file", help="Descriptor JSON file")
    disc_parser.add_argument("--params", metavar="YAML", help="Helix parameter file")
    disc_parser.add_argument("--settings", metavar="YAML", help="Discretization settings file")
    disc_parser.add_argument("-o", "--output", metavar="FILE", help="Write the axis positions as JSON")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    commands = {"length": cmd_length, "discretize": cmd_discretize}
    try:
        return commands[args.action](args)
    except (CurveError, OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


__all__ = ["main", "cmd_length", "cmd_discretize"]


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
