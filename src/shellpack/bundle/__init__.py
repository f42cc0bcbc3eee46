"""Manifest model, bundle assembly, and bin-directory filtering."""

from .assembler import BundleInputs, RuntimeFile, assemble_bundle, unique_identifiers
from .bin_filter import select_bin_entries
from .manifest import FileEntry, FileManifest

__all__ = [
    "BundleInputs",
    "FileEntry",
    "FileManifest",
    "RuntimeFile",
    "assemble_bundle",
    "select_bin_entries",
    "unique_identifiers",
]
