"""
Embedding Generation System
OpenAI text-embedding-3-small for vector embeddings
"""

from chatapp.embeddings.openai_embedder import OpenAIEmbedder

__all__ = ["OpenAIEmbedder"]
