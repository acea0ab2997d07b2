"""Virtual file systems.

``FileProvider`` is the contract; the rest are implementations:

    PhysicalFileProvider -- a directory on disk
    MemoryFileProvider -- files held in memory
    CompositeFileProvider -- first match across several providers
    NullFileProvider -- nothing exists
"""

from perch.files.base import FileInfo, FileProvider, normalize_subpath
from perch.files.composite import CompositeFileProvider, NullFileProvider
from perch.files.memory import MemoryFileProvider
from perch.files.physical import PhysicalFileProvider

__all__ = [
    "CompositeFileProvider",
    "FileInfo",
    "FileProvider",
    "MemoryFileProvider",
    "NullFileProvider",
    "PhysicalFileProvider",
    "normalize_subpath",
]
