"""
Prompt template API endpoints
CRUD for the current user's templates
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from chatapp.database import get_db
from chatapp.core.exceptions import http_404_not_found
from chatapp.api.deps import get_current_user
from chatapp.models.prompt_template import PromptTemplate
from chatapp.models.user import User
from chatapp.schemas.template import TemplateCreate, TemplateResponse, TemplateUpdate
from chatapp.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/templates", tags=["templates"])


def _get_owned_template(db: Session, template_id: UUID, user: User) -> PromptTemplate:
    template = db.query(PromptTemplate).filter(
        PromptTemplate.id == template_id,
        PromptTemplate.user_id == user.id
    ).first()

    if not template:
        raise http_404_not_found("Template not found")

    return template


@router.get("", response_model=List[TemplateResponse])
async def list_templates(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    List templates for current user

    Returns:
        Templates ordered by creation (most recent first)
    """
    return db.query(PromptTemplate).filter(
        PromptTemplate.user_id == current_user.id
    ).order_by(PromptTemplate.created_at.desc()).all()


@router.post("", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_template(
    template: TemplateCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Create a template

    Raises:
        HTTPException: 400 for blank name/content or a non-boolean isFavorite
    """
    now = utcnow()
    db_template = PromptTemplate(
        user_id=current_user.id,
        name=template.name,
        description=template.description,
        content=template.content,
        is_favorite=template.is_favorite,
        created_at=now,
        updated_at=now,
    )
    db.add(db_template)
    db.commit()
    db.refresh(db_template)
    logger.info(f"Created template {db_template.id}")
    return db_template


@router.get("/{template_id}", response_model=TemplateResponse)
async def get_template(
    template_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get a template by ID"""
    return _get_owned_template(db, template_id, current_user)


@router.put("/{template_id}", response_model=TemplateResponse)
async def update_template(
    template_id: UUID,
    update: TemplateUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Update a template (partial)

    Only fields present in the body are changed.
    """
    db_template = _get_owned_template(db, template_id, current_user)

    for field, value in update.model_dump(exclude_unset=True).items():
        if field in ("name", "content", "is_favorite") and value is None:
            continue
        setattr(db_template, field, value)
    db_template.updated_at = utcnow()

    db.commit()
    db.refresh(db_template)
    return db_template


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(
    template_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Delete a template"""
    db_template = _get_owned_template(db, template_id, current_user)
    db.delete(db_template)
    db.commit()
    return None
