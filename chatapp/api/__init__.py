"""
API Routes and Endpoints

Routers:
    - auth, session: Guest/registered sessions
    - chat: Streaming chat, stream resumption, visibility
    - history, vote: Chat history and message votes
    - document, suggestions: Artifact documents
    - templates, settings: Prompt templates, user settings and stats
    - rag: Document upload for retrieval
    - admin: Admin back-office
"""
