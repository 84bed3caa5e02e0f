"""
Data management submodule: the persisted key/value store and its file I/O.
"""

from .core import SettingsStore, data_dir, default_store_path
from .io import atomic_write, load_document, DATA_YAML, DATA_JSON

__all__ = [
    'SettingsStore',
    'data_dir',
    'default_store_path',
    'atomic_write',
    'load_document',
    'DATA_YAML',
    'DATA_JSON',
]
