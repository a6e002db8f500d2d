"""
RAG Upload Service

Turns an uploaded text/markdown file into a document row plus embedded
fixed-size chunks.

Pipeline:
1. Validate size and type, decode UTF-8
2. Derive a title
3. Chunk (2000 chars, 200 overlap)
4. Embed every chunk (text-embedding-3-small, 1536 dimensions)
5. Insert the document, then its chunks (document removed if chunks fail)
"""

import logging
import os
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from chatapp.config import settings
from chatapp.core.exceptions import ChatError, http_400_bad_request
from chatapp.embeddings.openai_embedder import OpenAIEmbedder
from chatapp.models.rag_document import RagDocument, RagDocumentChunk

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".txt", ".md"}
ALLOWED_MIME_TYPES = {"text/plain", "text/markdown"}
TITLE_MAX_LENGTH = 80
UNTITLED = "Untitled Document"


def chunk_text(text: str, size: int = None, overlap: int = None) -> List[str]:
    """
    Split text into overlapping fixed-size windows

    Windows start every (size - overlap) characters; the last window is the
    first one that reaches the end of the text.

    Args:
        text: Text to split
        size: Window size in characters (default: RAG_CHUNK_SIZE)
        overlap: Characters shared by consecutive windows (default: RAG_CHUNK_OVERLAP)

    Returns:
        List of chunks (empty for empty text)

    Example:
        >>> chunk_text("abcdefghij", size=4, overlap=1)
        ['abcd', 'defg', 'ghij']
    """
    size = size or settings.RAG_CHUNK_SIZE
    overlap = settings.RAG_CHUNK_OVERLAP if overlap is None else overlap

    if size <= 0 or overlap < 0 or overlap >= size:
        raise ValueError("chunk size must be positive and larger than the overlap")

    chunks = []
    start = 0
    while start < len(text):
        end = min(start + size, len(text))
        chunks.append(text[start:end])
        if end == len(text):
            break
        start += size - overlap

    return chunks


def derive_title(content: str, filename: Optional[str]) -> str:
    """
    Title for an uploaded document

    Order of preference:
    1. First line, when it is 1-80 characters after trimming
    2. First 80 characters of the trimmed content
    3. File name without extension
    4. "Untitled Document"
    """
    trimmed = (content or "").strip()
    first_line = trimmed.split("\n", 1)[0].strip()

    if 0 < len(first_line) <= TITLE_MAX_LENGTH:
        return first_line

    if trimmed:
        return trimmed[:TITLE_MAX_LENGTH]

    if filename:
        stem = os.path.splitext(os.path.basename(filename))[0].strip()
        if stem:
            return stem

    return UNTITLED


def is_allowed_file(filename: Optional[str], content_type: Optional[str]) -> bool:
    """Text and markdown files only (by extension or declared MIME type)"""
    extension = os.path.splitext(filename or "")[1].lower()
    mime_type = (content_type or "").split(";")[0].strip().lower()
    return extension in ALLOWED_EXTENSIONS or mime_type in ALLOWED_MIME_TYPES


class RagService:
    """Upload pipeline for RAG documents"""

    def __init__(self, db: Session, embedder: Optional[OpenAIEmbedder] = None):
        self.db = db
        self._embedder = embedder

    @property
    def embedder(self) -> OpenAIEmbedder:
        if self._embedder is None:
            self._embedder = OpenAIEmbedder()
        return self._embedder

    def validate_upload(self, filename: Optional[str], content_type: Optional[str], data: bytes) -> str:
        """
        Validate an upload and decode it

        Returns:
            Decoded text

        Raises:
            HTTPException: 400 for oversized, unsupported, undecodable or blank files
        """
        if len(data) > settings.RAG_MAX_FILE_SIZE:
            raise http_400_bad_request(
                f"File too large. Maximum size is {settings.RAG_MAX_FILE_SIZE // (1024 * 1024)}MB"
            )

        if not is_allowed_file(filename, content_type):
            raise http_400_bad_request("Only .txt and .md files are supported")

        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError:
            raise http_400_bad_request("File must be UTF-8 encoded text")

        if not text.strip():
            raise http_400_bad_request("File is empty")

        return text

    async def embed_chunks(self, chunks: List[str]) -> List[List[float]]:
        """
        Embed chunks and check dimensions

        Raises:
            ChatError: bad_gateway:rag if a vector has the wrong size
        """
        embeddings = await self.embedder.embed_batch(chunks)

        if len(embeddings) != len(chunks):
            raise ChatError("bad_gateway:rag", f"Expected {len(chunks)} embeddings, got {len(embeddings)}")

        for embedding in embeddings:
            if len(embedding) != settings.EMBEDDING_DIMENSIONS:
                raise ChatError(
                    "bad_gateway:rag",
                    f"Embedding has {len(embedding)} dimensions, expected {settings.EMBEDDING_DIMENSIONS}"
                )

        return embeddings

    async def upload(
        self,
        user_id: UUID,
        filename: Optional[str],
        content_type: Optional[str],
        data: bytes,
    ) -> Tuple[RagDocument, int]:
        """
        Store an uploaded file as a RAG document with embedded chunks

        Returns:
            (document, chunk_count)
        """
        text = self.validate_upload(filename, content_type, data)
        title = derive_title(text, filename)
        chunks = chunk_text(text, settings.RAG_CHUNK_SIZE, settings.RAG_CHUNK_OVERLAP)

        logger.info(f"Embedding {len(chunks)} chunks for upload '{filename}'")
        embeddings = await self.embed_chunks(chunks)

        document = RagDocument(
            user_id=user_id,
            title=title,
            original_filename=filename or title,
            mime_type=content_type,
            size_bytes=len(data),
            content=text,
        )
        self.db.add(document)
        self.db.commit()
        self.db.refresh(document)
        document_id = document.id

        try:
            self.db.add_all([
                RagDocumentChunk(
                    document_id=document_id,
                    chunk_index=index,
                    content=chunk,
                    embedding=embedding,
                )
                for index, (chunk, embedding) in enumerate(zip(chunks, embeddings))
            ])
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.error(f"Chunk insert failed, removing document {document_id}")
            self.db.query(RagDocument).filter(RagDocument.id == document_id).delete()
            self.db.commit()
            raise

        logger.info(f"Stored RAG document {document.id} with {len(chunks)} chunks")
        return document, len(chunks)

    def get_chunk_previews(self, document_id: UUID, user_id: UUID, limit: int = 20) -> Optional[List[RagDocumentChunk]]:
        """
        Chunks of a document owned by user_id

        Returns:
            Up to `limit` chunks ordered by index, or None if the document
            does not exist or belongs to someone else
        """
        document = self.db.query(RagDocument).filter(
            RagDocument.id == document_id,
            RagDocument.user_id == user_id
        ).first()
        if not document:
            return None

        return self.db.query(RagDocumentChunk).filter(
            RagDocumentChunk.document_id == document_id
        ).order_by(RagDocumentChunk.chunk_index.asc()).limit(limit).all()
