"""Input/output helpers for nanocurve."""

from .descriptor_json import (
    SCHEMA_ID,
    descriptor_from_dict,
    descriptor_to_dict,
    dumps,
    load_descriptor,
    loads,
    save_descriptor,
)

__all__ = [
    "SCHEMA_ID",
    "descriptor_from_dict",
    "descriptor_to_dict",
    "dumps",
    "load_descriptor",
    "loads",
    "save_descriptor",
]
