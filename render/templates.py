from __future__ import annotations

import pathlib
from typing import Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from schemas.resume import ResumeDocument, StyleOverrides

TEMPLATE_DIR = pathlib.Path(__file__).resolve().parent.parent / "templates"
PREVIEW_TEMPLATE = "resume.html"

TEMPLATE_STYLES: Dict[str, StyleOverrides] = {
    "classic": StyleOverrides(
        container="font-serif",
        name="text-4xl font-bold text-gray-800",
        contact_info="text-sm text-gray-600",
        section_title="text-xl font-bold text-gray-800 border-b-2 border-gray-800 pb-1 mb-3",
        item_title="text-lg font-semibold",
        item_subtitle="italic",
    ),
    "modern": StyleOverrides(
        container="font-sans",
        header="bg-gray-800 text-white p-6 -mx-10 -mt-10 mb-6",
        name="text-5xl font-light text-white tracking-wider",
        contact_info="text-sm text-gray-300",
        section_title=(
            "text-lg font-semibold text-indigo-600 uppercase tracking-wider "
            "border-b-2 border-indigo-200 pb-1 mb-4"
        ),
        item_title="text-lg font-bold text-gray-900",
        item_subtitle="text-gray-600",
        skill_item="bg-indigo-100 text-indigo-800",
    ),
    "professional": StyleOverrides(
        container="font-sans text-gray-800",
        header="border-b-4 border-slate-700 pb-4 mb-6",
        name="text-4xl font-semibold text-slate-800",
        contact_info="text-sm text-slate-500",
        section_title="text-base font-bold text-slate-700 uppercase tracking-wide mb-2",
        item_title="font-semibold text-slate-900",
        item_subtitle="text-slate-600",
        item_date="text-sm text-slate-500",
        skill_item="border border-slate-300 text-slate-700",
    ),
}


def list_templates() -> List[str]:
    return list(TEMPLATE_STYLES)


def default_styles(template_name: str) -> StyleOverrides:
    if template_name not in TEMPLATE_STYLES:
        raise ValueError(f"Template {template_name} not found. Available: {list_templates()}")
    return TEMPLATE_STYLES[template_name].model_copy()


def _href(link: str) -> str:
    link = link.strip()
    if not link or "://" in link or link.startswith("mailto:"):
        return link
    return f"https://{link}"


def render_preview(
    document: ResumeDocument,
    template_name: str,
    styles: Optional[StyleOverrides] = None,
) -> str:
    """Render HTML; slots missing from `styles` use the template default."""
    classes = default_styles(template_name).as_mapping()
    if styles is not None:
        classes.update(styles.as_mapping())

    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(enabled_extensions=("html",)),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["href"] = _href
    template = env.get_template(PREVIEW_TEMPLATE)
    return template.render(resume=document, css=classes, template_name=template_name)
