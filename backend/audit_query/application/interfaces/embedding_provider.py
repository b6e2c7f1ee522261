"""Abstract interface (port) for embedding generation."""

from abc import ABC, abstractmethod


class EmbeddingProvider(ABC):
    """Port for generating text embeddings: implemented in the infrastructure layer."""

    @abstractmethod
    async def generate_embeddings(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Returns:
            List of embedding vectors, one per input text, in input order.
        """
        ...

    async def embed(self, text: str) -> list[float]:
        """Embed a single text."""
        vectors = await self.generate_embeddings([text])
        return vectors[0]

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the backend is configured and may be called."""
        ...

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Return the dimensionality of the embedding vectors produced by this provider."""
        ...
