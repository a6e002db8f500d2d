"""
SQLAlchemy Database Models

All models use UUID primary keys (AdminSettings is a singleton row).
Timestamps are set in UTC by the application.

Models:
    - User: Chat app identities (regular and guest)
    - Chat: Conversations
    - Message: Individual messages stored as UI parts
    - Vote: Up/down votes on messages
    - Document: Versioned artifacts
    - Suggestion: Edit suggestions for a document version
    - Stream: Stream ids for resumable responses
    - UserSettings: Per-user chat preferences
    - PromptTemplate: Saved prompts
    - RagDocument: Uploaded text documents
    - RagDocumentChunk: Text chunks with vector embeddings
    - AdminUser: Back-office accounts
    - AdminSettings: Site-wide settings

Relationships:
    User 1:N Chat
    User 1:1 UserSettings
    User 1:N PromptTemplate
    User 1:N RagDocument
    Chat 1:N Message, Vote, Stream
    Document 1:N Suggestion
    RagDocument 1:N RagDocumentChunk

Cascade Deletes:
    - Delete User → Delete all Chats, Settings, Templates, RagDocuments
    - Delete Chat → Delete all Messages, Votes, Streams
    - Delete RagDocument → Delete all Chunks
"""

from chatapp.models.user import User
from chatapp.models.chat import Chat
from chatapp.models.message import Message
from chatapp.models.vote import Vote
from chatapp.models.document import Document, Suggestion
from chatapp.models.stream import Stream
from chatapp.models.user_settings import UserSettings
from chatapp.models.prompt_template import PromptTemplate
from chatapp.models.rag_document import RagDocument, RagDocumentChunk
from chatapp.models.admin import AdminUser, AdminSettings

__all__ = [
    "User", "Chat", "Message", "Vote", "Document", "Suggestion", "Stream",
    "UserSettings", "PromptTemplate", "RagDocument", "RagDocumentChunk",
    "AdminUser", "AdminSettings",
]
