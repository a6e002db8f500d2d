"""
OpenAI Embedder
Generate embeddings using OpenAI text-embedding-3-small with Redis caching
"""

from typing import List, Optional
from openai import AsyncOpenAI
from chatapp.config import settings
from chatapp.services.cache_service import CacheService
from chatapp.utils.retry import retry_on_api_error
import logging

logger = logging.getLogger(__name__)


class OpenAIEmbedder:
    """Generate embeddings using OpenAI API with caching"""

    batch_size = 100

    def __init__(self, client: Optional[AsyncOpenAI] = None, cache: Optional[CacheService] = None):
        self.client = client or AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
        self.model = settings.EMBEDDING_MODEL
        self.dimensions = settings.EMBEDDING_DIMENSIONS
        self.cache = cache or CacheService()

    @retry_on_api_error()
    async def _create(self, batch: List[str]) -> List[List[float]]:
        response = await self.client.embeddings.create(
            model=self.model,
            input=batch,
            dimensions=self.dimensions
        )
        return [item.embedding for item in sorted(response.data, key=lambda d: d.index)]

    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        """
        Generate embeddings for batch of texts

        Cached embeddings are reused; only misses are sent to the API.

        Args:
            texts: List of text strings

        Returns:
            List of embedding vectors, in input order
        """
        results: List[Optional[List[float]]] = [self.cache.get_embedding(t) for t in texts]
        missing = [i for i, cached in enumerate(results) if cached is None]

        if len(missing) < len(texts):
            logger.debug(f"Embedding cache hits: {len(texts) - len(missing)}/{len(texts)}")

        for start in range(0, len(missing), self.batch_size):
            indexes = missing[start:start + self.batch_size]
            embeddings = await self._create([texts[i] for i in indexes])

            for i, embedding in zip(indexes, embeddings):
                results[i] = embedding
                self.cache.set_embedding(texts[i], embedding)

        return results

    async def embed(self, text: str) -> List[float]:
        """
        Generate embedding for single text with caching

        Args:
            text: Text to embed

        Returns:
            Embedding vector
        """
        embeddings = await self.embed_batch([text])
        return embeddings[0]
