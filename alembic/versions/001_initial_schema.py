"""initial schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
from pgvector.sqlalchemy import Vector


# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _uuid():
    return postgresql.UUID(as_uuid=True)


def _timestamp():
    return sa.DateTime(timezone=True)


def upgrade() -> None:
    """
    Create the chat app, RAG and admin back-office tables.

    - users/chat/message/vote/stream: chat app conversations
    - document/suggestion: versioned artifact documents (composite key id + created_at)
    - user_settings/prompt_templates: per-user preferences
    - documents/document_chunks: RAG uploads with Vector(1536) embeddings
    - admin_users/admin_settings: back-office
    """
    op.execute("CREATE EXTENSION IF NOT EXISTS vector")

    op.create_table(
        'users',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('email', sa.String(64), nullable=False),
        sa.Column('password', sa.String(64), nullable=True),
        sa.Column('type', sa.String(16), nullable=False, server_default='regular'),
        sa.Column('status', sa.String(16), nullable=False, server_default='active'),
        sa.Column('created_at', _timestamp(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', _timestamp(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'chat',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('created_at', _timestamp(), nullable=False, server_default=sa.func.now()),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('user_id', _uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('visibility', sa.String(10), nullable=False, server_default='private'),
        sa.Column('last_context', postgresql.JSONB(), nullable=True),
    )
    op.create_index('ix_chat_user_id', 'chat', ['user_id'])
    op.create_index('ix_chat_created_at', 'chat', ['created_at'])

    op.create_table(
        'message',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('chat_id', _uuid(), sa.ForeignKey('chat.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('parts', sa.JSON(), nullable=False),
        sa.Column('attachments', sa.JSON(), nullable=False),
        sa.Column('created_at', _timestamp(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_message_chat_id', 'message', ['chat_id'])
    op.create_index('ix_message_created_at', 'message', ['created_at'])

    op.create_table(
        'vote',
        sa.Column('chat_id', _uuid(), sa.ForeignKey('chat.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('message_id', _uuid(), sa.ForeignKey('message.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('is_upvoted', sa.Boolean(), nullable=False),
    )

    op.create_table(
        'stream',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('chat_id', _uuid(), sa.ForeignKey('chat.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', _timestamp(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_stream_chat_id', 'stream', ['chat_id'])

    op.create_table(
        'document',
        sa.Column('id', _uuid(), nullable=False),
        sa.Column('created_at', _timestamp(), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('kind', sa.String(10), nullable=False, server_default='text'),
        sa.Column('user_id', _uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.PrimaryKeyConstraint('id', 'created_at'),
    )
    op.create_index('ix_document_user_id', 'document', ['user_id'])

    op.create_table(
        'suggestion',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('document_id', _uuid(), nullable=False),
        sa.Column('document_created_at', _timestamp(), nullable=False),
        sa.Column('original_text', sa.Text(), nullable=False),
        sa.Column('suggested_text', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_resolved', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('user_id', _uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', _timestamp(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(
            ['document_id', 'document_created_at'],
            ['document.id', 'document.created_at'],
            ondelete='CASCADE'
        ),
    )
    op.create_index('ix_suggestion_document_id', 'suggestion', ['document_id'])

    op.create_table(
        'user_settings',
        sa.Column('user_id', _uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('model', sa.Text(), nullable=True),
        sa.Column('temperature', sa.Float(), nullable=True),
        sa.Column('max_tokens', sa.Integer(), nullable=True),
        sa.Column('use_templates_as_system', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', _timestamp(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', _timestamp(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'prompt_templates',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('user_id', _uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('is_favorite', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', _timestamp(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', _timestamp(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_prompt_templates_user_id', 'prompt_templates', ['user_id'])

    op.create_table(
        'documents',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('user_id', _uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('original_filename', sa.String(512), nullable=True),
        sa.Column('mime_type', sa.String(255), nullable=True),
        sa.Column('size_bytes', sa.Integer(), nullable=True),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('created_at', _timestamp(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_documents_user_id', 'documents', ['user_id'])

    op.create_table(
        'document_chunks',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('document_id', _uuid(), sa.ForeignKey('documents.id', ondelete='CASCADE'), nullable=False),
        sa.Column('chunk_index', sa.Integer(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('embedding', Vector(1536), nullable=True),
        sa.Column('created_at', _timestamp(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('document_id', 'chunk_index', name='uq_document_chunk_index'),
    )
    op.create_index('ix_document_chunks_document_id', 'document_chunks', ['document_id'])

    # Approximate nearest neighbour search over chunk embeddings
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_document_chunks_embedding
        ON document_chunks
        USING ivfflat (embedding vector_cosine_ops)
        WITH (lists = 100)
    """)

    op.create_table(
        'admin_users',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('role', sa.String(20), nullable=False, server_default='user'),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('password_hash', sa.String(255), nullable=True),
        sa.Column('created_at', _timestamp(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', _timestamp(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_admin_users_email', 'admin_users', ['email'], unique=True)

    op.create_table(
        'admin_settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('site_name', sa.String(255), nullable=False, server_default='Admin Panel'),
        sa.Column('allow_signup', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('daily_token_limit', sa.Integer(), nullable=False, server_default='20000'),
        sa.Column('updated_at', _timestamp(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('daily_token_limit >= 0', name='ck_admin_settings_daily_token_limit'),
    )


def downgrade() -> None:
    """
    Drop all tables.

    Warning: This deletes every chat, document and admin record.
    """
    op.drop_table('admin_settings')
    op.drop_table('admin_users')
    op.execute("DROP INDEX IF EXISTS idx_document_chunks_embedding")
    op.drop_table('document_chunks')
    op.drop_table('documents')
    op.drop_table('prompt_templates')
    op.drop_table('user_settings')
    op.drop_table('suggestion')
    op.drop_table('document')
    op.drop_table('stream')
    op.drop_table('vote')
    op.drop_table('message')
    op.drop_table('chat')
    op.drop_table('users')
