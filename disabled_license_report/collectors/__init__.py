from .directory import DirectoryCollector

__all__ = [
    "DirectoryCollector",
]
