"""Chat platform backend: chat streaming, RAG upload and admin back-office."""
