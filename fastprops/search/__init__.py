from .fast_properties import (
    FAST,
    SLOW,
    FastProperties,
    FastPropertiesReport,
    normalize_property_path,
)

__all__ = [
    "FAST",
    "SLOW",
    "FastProperties",
    "FastPropertiesReport",
    "normalize_property_path",
]
