"""
Chat Service - streaming conversational AI with persistence
Supports 100+ model providers via LiteLLM

Per request:
1. Enforce the daily message entitlement
2. Look up or create the chat (title generated by the title model)
3. Persist the user message and record a stream id
4. Stream the model output as UI message stream parts
5. Persist the assistant message and usage when the stream ends
"""

import json
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, AsyncGenerator, Dict, List, Optional
from uuid import UUID, uuid4

import litellm
from langchain_litellm import ChatLiteLLM
from langchain_core.messages import SystemMessage, HumanMessage, AIMessage
from sqlalchemy import func
from sqlalchemy.orm import Session

from chatapp.config import settings, CHAT_MODELS
from chatapp.core.exceptions import ChatError
from chatapp.database import SessionLocal
from chatapp.models.chat import Chat
from chatapp.models.message import Message
from chatapp.models.prompt_template import PromptTemplate
from chatapp.models.stream import Stream
from chatapp.models.user_settings import UserSettings
from chatapp.prompts import PromptBuilder, clean_title, TITLE_MAX_LENGTH
from chatapp.schemas.auth import SessionUser
from chatapp.schemas.chat import AppUsage, MessageResponse, PostRequestBody, StreamPart
from chatapp.streaming.ui_stream import SSE_DONE, UIMessageStreamBuilder
from chatapp.utils.datetime_utils import as_utc, utcnow

# Configure litellm to automatically drop unsupported parameters
litellm.drop_params = True

logger = logging.getLogger(__name__)

STREAM_ERROR_TEXT = "Oops, an error occurred!"


def get_entitlements(user_type: str) -> Dict[str, int]:
    """
    Entitlements by user type

    Returns:
        {"maxMessagesPerDay": int}
    """
    if user_type == "guest":
        return {"maxMessagesPerDay": settings.GUEST_MAX_MESSAGES_PER_DAY}
    return {"maxMessagesPerDay": settings.REGULAR_MAX_MESSAGES_PER_DAY}


def resolve_model_string(model_id: str) -> str:
    """Map a public chat model id to its LiteLLM model string"""
    if model_id == "chat-model-reasoning":
        return settings.REASONING_MODEL
    if model_id == "title-model":
        return settings.TITLE_MODEL
    return settings.CHAT_MODEL


@dataclass
class PreparedChat:
    """Everything the stream needs once the request has been validated"""
    chat_id: UUID
    session_user: SessionUser
    model_id: str
    system_prompt: str
    ui_messages: List[Dict[str, Any]]
    stream_id: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    persist: bool = True

    @property
    def reasoning(self) -> bool:
        return CHAT_MODELS.get(self.model_id, {}).get("reasoning", False)

    @property
    def model_string(self) -> str:
        return resolve_model_string(self.model_id)


class ChatService:
    """
    Chat service

    Key features:
    - Daily message entitlements per user type
    - Ownership checks on existing chats
    - Title generation for new chats
    - Reasoning split for <think> models
    - Token counting and cost enrichment for usage tracking
    - Persistence of the assistant message even when the client goes away
    """

    def __init__(self, db: Session, session_factory=None):
        """
        Initialize chat service

        Args:
            db: Request database session
            session_factory: Factory for sessions used after the request
                (assistant message persistence). Defaults to SessionLocal.
        """
        self.db = db
        self.session_factory = session_factory or SessionLocal
        self.prompt_builder = PromptBuilder()

    # ------------------------------------------------------------------
    # LLM helpers
    # ------------------------------------------------------------------

    def _create_llm(
        self,
        model_string: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> ChatLiteLLM:
        """
        Create LLM instance with request-specific overrides.

        Args:
            model_string: LiteLLM model string (provider/model)
            temperature: Temperature override (default: CHAT_TEMPERATURE)
            max_tokens: Max tokens override (default: CHAT_MAX_TOKENS)

        Returns:
            Configured ChatLiteLLM instance
        """
        litellm_kwargs = {
            "model": model_string,
            "temperature": temperature if temperature is not None else settings.CHAT_TEMPERATURE,
            "max_tokens": max_tokens or settings.CHAT_MAX_TOKENS,
            "timeout": settings.LLM_TIMEOUT,
        }

        if settings.LLM_API_KEY:
            litellm_kwargs["api_key"] = settings.LLM_API_KEY

        if settings.LLM_API_BASE:
            litellm_kwargs["api_base"] = settings.LLM_API_BASE

        logger.debug(f"Creating LLM: model={model_string}, temp={litellm_kwargs['temperature']}")
        return ChatLiteLLM(**litellm_kwargs)

    def _count_tokens(self, text: str, model: str = "gpt-4o-mini") -> int:
        """
        Count tokens in text using tiktoken

        Falls back to cl100k_base for models tiktoken does not know.
        """
        import tiktoken
        try:
            encoding = tiktoken.encoding_for_model(model)
        except KeyError:
            encoding = tiktoken.get_encoding("cl100k_base")
        return len(encoding.encode(text))

    async def generate_title(self, parts: List[Dict[str, Any]]) -> str:
        """
        Generate a chat title from the first user message

        Args:
            parts: UI parts of the first message

        Returns:
            Title of at most 80 characters
        """
        first_text = " ".join(
            p.get("text", "") for p in parts if p.get("type") == "text"
        ).strip()
        fallback = clean_title(first_text) or "New chat"

        try:
            llm = self._create_llm(resolve_model_string("title-model"), temperature=0.2, max_tokens=60)
            result = await llm.ainvoke([
                SystemMessage(content=self.prompt_builder.build_title_prompt()),
                HumanMessage(content=json.dumps({"role": "user", "parts": parts})),
            ])
            title = clean_title(str(result.content), TITLE_MAX_LENGTH)
            return title or fallback
        except Exception as e:
            logger.warning(f"Title generation failed, using message text: {e}")
            return fallback

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_chat(self, chat_id: UUID) -> Optional[Chat]:
        return self.db.query(Chat).filter(Chat.id == chat_id).first()

    def save_chat(self, chat_id: UUID, user_id: UUID, title: str, visibility: str) -> Chat:
        chat = Chat(
            id=chat_id,
            user_id=user_id,
            title=title,
            visibility=visibility,
            created_at=utcnow(),
        )
        self.db.add(chat)
        self.db.commit()
        self.db.refresh(chat)
        logger.info(f"Created chat {chat_id} for user {user_id}")
        return chat

    def get_messages(self, chat_id: UUID) -> List[Message]:
        return self.db.query(Message).filter(
            Message.chat_id == chat_id
        ).order_by(Message.created_at.asc()).all()

    def save_user_message(self, chat_id: UUID, message_id: UUID, parts: List[Dict[str, Any]]) -> Message:
        message = Message(
            id=message_id,
            chat_id=chat_id,
            role="user",
            parts=parts,
            attachments=[],
            created_at=utcnow(),
        )
        self.db.add(message)
        self.db.commit()
        return message

    def get_message_count_by_user(self, user_id: UUID, difference_in_hours: int = 24) -> int:
        """
        Count the user's own messages in the trailing window

        Args:
            user_id: User UUID
            difference_in_hours: Window size

        Returns:
            Number of user-role messages across all the user's chats
        """
        cutoff = utcnow() - timedelta(hours=difference_in_hours)
        return self.db.query(func.count(Message.id)).join(
            Chat, Message.chat_id == Chat.id
        ).filter(
            Chat.user_id == user_id,
            Message.role == "user",
            Message.created_at >= cutoff
        ).scalar() or 0

    def create_stream_id(self, chat_id: UUID) -> str:
        stream = Stream(id=uuid4(), chat_id=chat_id, created_at=utcnow())
        self.db.add(stream)
        self.db.commit()
        return str(stream.id)

    def get_stream_ids(self, chat_id: UUID) -> List[str]:
        """Stream ids of a chat, oldest first"""
        rows = self.db.query(Stream.id).filter(
            Stream.chat_id == chat_id
        ).order_by(Stream.created_at.asc()).all()
        return [str(row[0]) for row in rows]

    def delete_chat(self, chat: Chat) -> None:
        self.db.delete(chat)
        self.db.commit()
        logger.info(f"Deleted chat {chat.id}")

    def _get_user_preferences(self, user_id: UUID):
        """User settings row and favourite template (if enabled)"""
        user_settings = self.db.query(UserSettings).filter(UserSettings.user_id == user_id).first()
        use_templates = user_settings.use_templates_as_system if user_settings else True

        template = None
        if use_templates:
            template = self.db.query(PromptTemplate).filter(
                PromptTemplate.user_id == user_id,
                PromptTemplate.is_favorite.is_(True)
            ).order_by(PromptTemplate.updated_at.desc()).first()

        return user_settings, template

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    async def prepare(self, body: PostRequestBody, session_user: SessionUser) -> PreparedChat:
        """
        Validate entitlements and ownership, persist the user message

        Args:
            body: Parsed request body
            session_user: Current identity

        Returns:
            PreparedChat ready to stream

        Raises:
            ChatError: rate_limit:chat or forbidden:chat
        """
        new_message = {
            "id": str(body.message.id),
            "role": "user",
            "parts": [part.model_dump(by_alias=True) for part in body.message.parts],
        }
        model_id = body.selected_chat_model.value
        reasoning = CHAT_MODELS.get(model_id, {}).get("reasoning", False)

        if not session_user.is_persisted:
            logger.info(f"Transient user {session_user.id}: skipping persistence and rate limits")
            return PreparedChat(
                chat_id=body.id,
                session_user=session_user,
                model_id=model_id,
                system_prompt=self.prompt_builder.build_system_prompt(reasoning=reasoning),
                ui_messages=[new_message],
                persist=False,
            )

        user_id = session_user.uuid
        message_count = self.get_message_count_by_user(user_id, difference_in_hours=24)
        if message_count > get_entitlements(session_user.type)["maxMessagesPerDay"]:
            raise ChatError("rate_limit:chat")

        chat = self.get_chat(body.id)
        if chat:
            if chat.user_id != user_id:
                raise ChatError("forbidden:chat")
        else:
            title = await self.generate_title(new_message["parts"])
            self.save_chat(body.id, user_id, title, body.selected_visibility_type.value)

        history = self.get_messages(body.id)
        ui_messages = [
            {"id": str(m.id), "role": m.role, "parts": m.parts or []}
            for m in history
        ]
        ui_messages.append(new_message)

        self.save_user_message(body.id, body.message.id, new_message["parts"])
        stream_id = self.create_stream_id(body.id)

        user_settings, template = self._get_user_preferences(user_id)

        return PreparedChat(
            chat_id=body.id,
            session_user=session_user,
            model_id=model_id,
            system_prompt=self.prompt_builder.build_system_prompt(
                reasoning=reasoning,
                template_content=template.content if template else None,
            ),
            ui_messages=ui_messages,
            stream_id=stream_id,
            temperature=user_settings.temperature if user_settings else None,
            max_tokens=user_settings.max_tokens if user_settings else None,
        )

    def _build_langchain_messages(self, system_prompt: str, ui_messages: List[Dict[str, Any]]) -> List:
        """
        Convert UI messages to LangChain messages

        Keeps the most recent CHAT_HISTORY_LIMIT messages. Reasoning parts
        are not sent back to the model. Image parts become image_url blocks.
        """
        messages = [SystemMessage(content=system_prompt)]

        for message in ui_messages[-settings.CHAT_HISTORY_LIMIT:]:
            parts = message.get("parts") or []
            text = "".join(p.get("text", "") for p in parts if p.get("type") == "text")

            if message.get("role") == "user":
                images = [p for p in parts if p.get("type") == "file"]
                if images:
                    content = [{"type": "text", "text": text}] if text else []
                    content.extend(
                        {"type": "image_url", "image_url": {"url": p["url"]}} for p in images
                    )
                    messages.append(HumanMessage(content=content))
                else:
                    messages.append(HumanMessage(content=text))
            elif message.get("role") == "assistant" and text:
                messages.append(AIMessage(content=text))

        return messages

    async def stream(self, prepared: PreparedChat) -> AsyncGenerator[str, None]:
        """
        Stream the assistant response as SSE chunks

        The assistant message is persisted when the stream ends, including
        when it ends early because the consumer went away.

        Yields:
            SSE-encoded UI message stream parts, then the [DONE] marker
        """
        builder = UIMessageStreamBuilder(split_reasoning=prepared.reasoning)
        lc_messages = self._build_langchain_messages(prepared.system_prompt, prepared.ui_messages)
        usage = None

        for part in builder.start():
            yield part.to_sse()

        try:
            llm = self._create_llm(prepared.model_string, prepared.temperature, prepared.max_tokens)
            provider_usage = None

            async for chunk in llm.astream(lc_messages):
                metadata = getattr(chunk, "usage_metadata", None)
                if isinstance(metadata, dict) and metadata.get("input_tokens"):
                    provider_usage = metadata

                content = chunk.content if isinstance(chunk.content, str) else ""
                for part in builder.push(content):
                    yield part.to_sse()

            for part in builder.finish():
                yield part.to_sse()

            usage = self._compute_usage(prepared, lc_messages, builder, provider_usage)
            yield StreamPart(type="data-usage", data=usage).to_sse()
            yield StreamPart(type="finish").to_sse()

        except Exception as e:
            logger.error(f"Model stream failed for chat {prepared.chat_id}: {e}")
            yield StreamPart(type="error", error_text=STREAM_ERROR_TEXT).to_sse()

        finally:
            self._persist_assistant_message(prepared, builder, usage)

        yield SSE_DONE

    def _compute_usage(
        self,
        prepared: PreparedChat,
        lc_messages: List,
        builder: UIMessageStreamBuilder,
        provider_usage: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Token usage for the call, enriched with cost when LiteLLM knows the model
        """
        if provider_usage:
            input_tokens = int(provider_usage.get("input_tokens", 0))
            output_tokens = int(provider_usage.get("output_tokens", 0))
        else:
            prompt_text = "\n".join(str(m.content) for m in lc_messages)
            input_tokens = self._count_tokens(prompt_text)
            output_tokens = self._count_tokens(builder.reasoning + builder.text)

        usage = AppUsage(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=input_tokens + output_tokens,
            model_id=prepared.model_string,
        )

        try:
            input_cost, output_cost = litellm.cost_per_token(
                model=prepared.model_string,
                prompt_tokens=input_tokens,
                completion_tokens=output_tokens,
            )
            usage.input_cost = input_cost
            usage.output_cost = output_cost
            usage.total_cost = input_cost + output_cost
        except Exception as e:
            logger.warning(f"Cost enrichment failed for {prepared.model_string}: {e}")

        return usage.model_dump(by_alias=True, exclude_none=True)

    def _persist_assistant_message(
        self,
        prepared: PreparedChat,
        builder: UIMessageStreamBuilder,
        usage: Optional[Dict[str, Any]],
    ) -> None:
        """Save the assistant message and last usage. Errors are logged only."""
        if not prepared.persist:
            logger.debug(f"Transient user: skipping message persistence for chat {prepared.chat_id}")
            return

        parts = builder.message_parts
        if not parts:
            return

        db = self.session_factory()
        try:
            db.add(Message(
                id=UUID(builder.message_id),
                chat_id=prepared.chat_id,
                role="assistant",
                parts=parts,
                attachments=[],
                created_at=utcnow(),
            ))

            if usage:
                chat = db.query(Chat).filter(Chat.id == prepared.chat_id).first()
                if chat:
                    chat.last_context = usage

            db.commit()
            logger.info(f"Saved assistant message {builder.message_id} for chat {prepared.chat_id}")
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to save messages for chat {prepared.chat_id}: {e}")
        finally:
            db.close()

    # ------------------------------------------------------------------
    # Resume
    # ------------------------------------------------------------------

    def build_restore_part(self, chat_id: UUID, now=None) -> Optional[StreamPart]:
        """
        Part re-sending the latest assistant message after a concluded stream

        Returns:
            data-appendMessage part when the last message is an assistant
            message created within STREAM_RESTORE_WINDOW_SECONDS, else None
        """
        last = self.db.query(Message).filter(
            Message.chat_id == chat_id
        ).order_by(Message.created_at.desc()).first()

        if not last or last.role != "assistant":
            return None

        now = now or utcnow()
        age = (now - as_utc(last.created_at)).total_seconds()
        if age > settings.STREAM_RESTORE_WINDOW_SECONDS:
            return None

        return StreamPart(
            type="data-appendMessage",
            data=MessageResponse.model_validate(last).model_dump_json(by_alias=True),
            transient=True,
        )
