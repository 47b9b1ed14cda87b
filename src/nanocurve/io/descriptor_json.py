"""Curve descriptor JSON serialization/deserialization helpers.

A descriptor is stored externally tagged: a single-key mapping from the
variant name to its fields, e.g. ``{"Twist": {"omega": 1.2, ...}}``. Files
written by :func:`save_descriptor` wrap that mapping in a small document
carrying the schema identifier and the helix parameters used by the design.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from nanocurve.descriptor import CurveDescriptor, descriptor_class
from nanocurve.errors import DescriptorError
from nanocurve.parameters import HelixParameters

SCHEMA_ID = "nanocurve-descriptor-json-v0.1"


def descriptor_to_dict(descriptor: CurveDescriptor) -> Dict[str, Any]:
    """Externally tagged mapping of ``descriptor``."""
    return {descriptor.kind: descriptor.to_dict()}


def descriptor_from_dict(data: Dict[str, Any]) -> CurveDescriptor:
    """Inverse of :func:`descriptor_to_dict`."""
    if not isinstance(data, dict) or len(data) != 1:
        raise DescriptorError(f"a curve descriptor must be a single-key mapping, got {data!r}")
    (kind, fields), = data.items()
    cls = descriptor_class(kind)
    if not isinstance(fields, dict):
        raise DescriptorError(f"{kind} descriptor fields must be a mapping")
    try:
        return cls.from_dict(fields)
    except DescriptorError:
        raise
    except (TypeError, ValueError) as exc:
        raise DescriptorError(f"invalid {kind} descriptor: {exc}") from exc


def dumps(descriptor: CurveDescriptor, *, indent: Optional[int] = None) -> str:
    return json.dumps(descriptor_to_dict(descriptor), indent=indent)


def loads(text: str) -> CurveDescriptor:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DescriptorError(f"curve descriptor is not valid JSON: {exc}") from exc
    return descriptor_from_dict(data)


def save_descriptor(
    descriptor: CurveDescriptor,
    path: Path | str,
    *,
    helix_parameters: Optional[HelixParameters] = None,
) -> Path:
    """Write ``descriptor`` to ``path`` as a schema-tagged JSON document."""
    doc: Dict[str, Any] = {"schema": SCHEMA_ID, "descriptor": descriptor_to_dict(descriptor)}
    if helix_parameters is not None:
        doc["helix_parameters"] = helix_parameters.to_dict()
    out = Path(path)
    out.write_text(json.dumps(doc, indent=2) + "\n", encoding="utf-8")
    return out


def load_descriptor(path: Path | str) -> Tuple[CurveDescriptor, Optional[HelixParameters]]:
    """Read a descriptor file.

    Accepts both documents written by :func:`save_descriptor` and bare
    externally tagged descriptors. Returns the descriptor and the helix
    parameters stored alongside it, if any.
    """
    src = Path(path)
    if not src.exists():
        raise FileNotFoundError(f"descriptor file not found: {src}")
    try:
        data = json.loads(src.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise DescriptorError(f"{src} is not valid JSON: {exc}") from exc
    if isinstance(data, dict) and "schema" in data:
        if data["schema"] != SCHEMA_ID:
            raise DescriptorError(f"unsupported descriptor schema: {data['schema']}")
        params = data.get("helix_parameters")
        try:
            helix_parameters = None if params is None else HelixParameters.from_dict(params)
        except (TypeError, ValueError) as exc:
            raise DescriptorError(f"invalid helix parameters in {src}: {exc}") from exc
        return descriptor_from_dict(data.get("descriptor")), helix_parameters
    return descriptor_from_dict(data), None


__all__ = [
    "SCHEMA_ID",
    "descriptor_to_dict",
    "descriptor_from_dict",
    "dumps",
    "loads",
    "save_descriptor",
    "load_descriptor",
]
