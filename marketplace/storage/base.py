from abc import ABC, abstractmethod


class BlobStore(ABC):
    """Storage for generated files, addressed by relative path"""

    @abstractmethod
    def put(self, path: str, content: bytes, content_type: str = "application/octet-stream") -> str:
        """Store content at path and return the path"""
        pass

    @abstractmethod
    def get(self, path: str) -> bytes:
        pass

    @abstractmethod
    def exists(self, path: str) -> bool:
        pass
