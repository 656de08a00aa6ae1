"""
Persistence of expression graphs.

- serialize / deserialize     : Graph <-> bytes
- write_to_path / read_from_path : Graph <-> file
"""

from .codec import serialize, deserialize, write_to_path, read_from_path

__all__ = [
    'serialize',
    'deserialize',
    'write_to_path',
    'read_from_path',
]
