import logging
import os
from typing import Any, Dict

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .errors import ServiceUnavailableError

# WeasyPrint is optional at import time; server should still boot without it
try:
    from weasyprint import HTML  # type: ignore
except Exception:  # pragma: no cover - environment without weasyprint system libs
    HTML = None  # type: ignore

logger = logging.getLogger(__name__)

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates")
env = Environment(loader=FileSystemLoader(TEMPLATES_DIR), autoescape=select_autoescape(["html"]))


def render_resume_html(resume: Dict[str, Any]) -> str:
    settings = resume.get("document_settings") or {}
    order = resume.get("section_order") or ["work_experience", "education", "skills", "projects"]
    configs = resume.get("section_configs") or {}
    sections = [s for s in order if (configs.get(s) or {}).get("visible", True) and resume.get(s)]
    return env.get_template("resume.html").render(r=resume, s=settings, sections=sections)


def render_resume_pdf(resume: Dict[str, Any]) -> bytes:
    if HTML is None:
        # Defer failure until actually attempting to render a PDF
        raise ServiceUnavailableError("PDF rendering is unavailable: WeasyPrint is not installed.")
    html = render_resume_html(resume)
    logger.debug(f"Rendering PDF for resume {resume.get('id')}")
    return HTML(string=html, base_url=TEMPLATES_DIR).write_pdf()
