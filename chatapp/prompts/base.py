"""
Prompt Builder - System and title prompts rendered from Jinja2 templates
"""

from datetime import datetime
from typing import Optional
from pathlib import Path
from jinja2 import Environment, FileSystemLoader, select_autoescape


TITLE_MAX_LENGTH = 80


class PromptBuilder:
    """
    Builds prompts from Jinja2 templates.

    Templates:
    - system.jinja2: chat system prompt (reasoning hint, favourite template)
    - title.jinja2: instructions for the title model
    """

    def __init__(self):
        templates_dir = Path(__file__).parent / "templates"
        self.env = Environment(
            loader=FileSystemLoader(templates_dir),
            autoescape=select_autoescape(['html', 'xml']),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def build_system_prompt(
        self,
        reasoning: bool = False,
        template_content: Optional[str] = None,
    ) -> str:
        """
        Build the system prompt for chat.

        Args:
            reasoning: Whether the selected model emits <think> reasoning
            template_content: Favourite prompt template to follow, if enabled

        Returns:
            Complete system prompt string
        """
        template = self.env.get_template("system.jinja2")
        return template.render(
            reasoning=reasoning,
            template_content=(template_content or "").strip() or None,
            current_date=datetime.now().strftime("%B %d, %Y"),
        ).strip()

    def build_title_prompt(self, max_length: int = TITLE_MAX_LENGTH) -> str:
        """Instructions for generating a chat title from the first message."""
        template = self.env.get_template("title.jinja2")
        return template.render(max_length=max_length).strip()


def clean_title(raw: str, max_length: int = TITLE_MAX_LENGTH) -> str:
    """
    Normalize a model-generated title: single line, no quotes or colons,
    at most max_length characters.
    """
    title = " ".join((raw or "").split())
    title = title.replace('"', "").replace(":", "").strip().strip("'").strip()
    return title[:max_length].strip()
