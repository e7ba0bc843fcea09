"""
Email template rendering for campaigns.

Campaign subjects and bodies use single-brace placeholders:

    {recruiter_first_name} {recruiter_name} {recruiter_title}
    {company_name} {position_title}

Missing values fall back to neutral defaults so a literal placeholder
never reaches a recipient. Plain-text bodies are wrapped into HTML with
Jinja2 before delivery; bodies that already contain markup are sent as-is.
"""

import logging
import os
import re
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape, TemplateNotFound

logger = logging.getLogger(__name__)

PLACEHOLDERS = (
    'recruiter_first_name',
    'recruiter_name',
    'company_name',
    'position_title',
    'recruiter_title',
)

DEFAULTS = {
    'recruiter_first_name': 'there',
    'recruiter_name': 'there',
    'company_name': 'your company',
    'position_title': 'the open position',
    'recruiter_title': 'Recruiter',
}

_PLACEHOLDER_RE = re.compile(r'\{(' + '|'.join(PLACEHOLDERS) + r')\}')
_HTML_TAG_RE = re.compile(r'<\s*(html|body|p|div|br|table|a|span|h[1-6])\b', re.IGNORECASE)

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "email_templates")

# Initialize Jinja2 environment
_env = None

_FALLBACK_HTML = """<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; font-size: 14px; line-height: 1.5;">
{% for paragraph in paragraphs %}<p>{% for line in paragraph %}{{ line }}{% if not loop.last %}<br>{% endif %}{% endfor %}</p>
{% endfor %}</body>
</html>"""


def _get_env() -> Environment:
    """Get or create Jinja2 environment."""
    global _env
    if _env is None:
        _env = Environment(
            loader=FileSystemLoader(TEMPLATE_DIR),
            autoescape=select_autoescape(['html']),
        )
    return _env


def build_context(recruiter, company, position_title: Optional[str]) -> dict:
    """
    Build placeholder values for one recipient.

    `recruiter` and `company` may be model objects or dicts.
    """
    def get(obj, key):
        if obj is None:
            return None
        if isinstance(obj, dict):
            return obj.get(key)
        return getattr(obj, key, None)

    first_name = (get(recruiter, 'first_name') or '').strip()
    last_name = (get(recruiter, 'last_name') or '').strip()
    full_name = f"{first_name} {last_name}".strip()

    values = {
        'recruiter_first_name': first_name,
        'recruiter_name': full_name,
        'company_name': (get(company, 'name') or get(company, 'company_name') or '').strip(),
        'position_title': (position_title or '').strip(),
        'recruiter_title': (get(recruiter, 'title') or '').strip(),
    }
    return {k: v or DEFAULTS[k] for k, v in values.items()}


def personalize(template: str, context: dict) -> str:
    """Replace every known placeholder in `template`."""
    return _PLACEHOLDER_RE.sub(lambda m: context.get(m.group(1)) or DEFAULTS[m.group(1)], template or '')


def render_message(
    subject_template: str,
    body_template: str,
    recruiter,
    company,
    position_title: Optional[str],
) -> tuple[str, str]:
    """
    Render subject and body for one recruiter.

    Returns:
        (subject, content)
    """
    context = build_context(recruiter, company, position_title)
    return personalize(subject_template, context), personalize(body_template, context)


def looks_like_html(content: str) -> bool:
    return bool(_HTML_TAG_RE.search(content or ''))


def render_html(content: str) -> str:
    """Wrap a plain-text body into an HTML email (unchanged if already HTML)."""
    if looks_like_html(content):
        return content

    paragraphs = [
        p.split('\n')
        for p in re.split(r'\n\s*\n', (content or '').replace('\r\n', '\n').strip())
        if p.strip()
    ]

    try:
        template = _get_env().get_template("message.html")
    except TemplateNotFound:
        logger.debug("message.html not found in %s, using inline template", TEMPLATE_DIR)
        template = Environment(autoescape=True).from_string(_FALLBACK_HTML)

    return template.render(paragraphs=paragraphs)
