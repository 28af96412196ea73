import json
import logging
import os
from functools import lru_cache
from typing import Optional, Tuple

import gradio as gr
from pydantic import ValidationError

from config.settings import get_settings
from llm.client import RequestDispatcher
from llm.errors import ConfigurationError, ResumeAIError
from llm.normalize import apply_manual_edits, assign_ids
from llm.pipeline import extract_resume, revise_content, revise_styles
from llm.registry import ProviderRegistry
from llm.storage import default_store
from render.templates import default_styles, list_templates, render_preview
from resume_parser.parser import SUPPORTED_EXTENSIONS, parse_resume_file
from schemas.resume import ResumeDocument, StyleOverrides

settings = get_settings()
logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger("resume_studio")

APP_TITLE = "Resume Studio"


@lru_cache()
def get_services() -> Tuple[ProviderRegistry, RequestDispatcher]:
    return ProviderRegistry(settings, default_store()), RequestDispatcher(settings)


def _views(resume: Optional[ResumeDocument], template: str, styles: Optional[StyleOverrides]):
    if resume is None:
        return "", ""
    return json.dumps(resume.wire_dict(), indent=2), render_preview(resume, template, styles)


def handle_upload(file_path, template: str):
    if not file_path:
        return None, None, "", "", "Please upload a resume file."
    registry, dispatcher = get_services()
    try:
        parsed = parse_resume_file(str(file_path))
        logger.info("Extracted text using %s", parsed.method)
        resume = extract_resume(parsed.raw_text, registry, dispatcher)
    except (ResumeAIError, ValueError) as exc:
        logger.error("Resume extraction failed: %s", exc)
        return None, None, "", "", f"Extraction failed: {exc}"
    styles = default_styles(template)
    resume_json, preview = _views(resume, template, styles)
    return resume, styles, resume_json, preview, "Resume extracted."


def handle_improve(resume: Optional[ResumeDocument], instructions: str, template: str, styles):
    if resume is None:
        return resume, "", "", "Upload a resume first."
    if not instructions.strip():
        return resume, *_views(resume, template, styles), "Describe the improvements you want."
    registry, dispatcher = get_services()
    revised = revise_content(resume, instructions, registry, dispatcher)
    status = "Content improved." if revised != resume else "Content was not changed."
    return revised, *_views(revised, template, styles), status


def handle_apply_edits(edited_json: str, resume: Optional[ResumeDocument], template: str, styles):
    if not (edited_json or "").strip():
        return resume, *_views(resume, template, styles), "Nothing to apply."
    try:
        edited = ResumeDocument.model_validate(json.loads(edited_json))
    except json.JSONDecodeError as exc:
        return resume, edited_json, _views(resume, template, styles)[1], f"Invalid JSON: {exc}"
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'document'}: {err['msg']}"
            for err in exc.errors()
        )
        return resume, edited_json, _views(resume, template, styles)[1], f"Edits rejected: {problems}"
    updated = assign_ids(edited) if resume is None else apply_manual_edits(resume, edited)
    logger.info("Applied manual edits")
    return updated, *_views(updated, template, styles), "Edits applied."


def handle_styles(styles, instructions: str, resume: Optional[ResumeDocument], template: str):
    styles = styles or default_styles(template)
    if not instructions.strip():
        return styles, _views(resume, template, styles)[1], "Describe the look you want."
    registry, dispatcher = get_services()
    try:
        styles = revise_styles(styles, instructions, registry, dispatcher)
        status = "Styles updated."
    except ResumeAIError as exc:
        status = f"Style generation failed: {exc}"
    return styles, _views(resume, template, styles)[1], status


def handle_template(template: str, resume: Optional[ResumeDocument]):
    styles = default_styles(template)
    return styles, _views(resume, template, styles)[1]


def _provider_choices(registry: ProviderRegistry):
    return [(info.label, info.provider.value) for info in registry.list_available_providers()]


def handle_provider_change(provider_id: str):
    registry, _ = get_services()
    selection = registry.set_active_provider(provider_id)
    info = next(i for i in registry.list_available_providers() if i.provider == selection.provider)
    return gr.update(choices=list(info.models), value=selection.model)


def handle_model_change(provider_id: str, model: str):
    registry, _ = get_services()
    registry.set_active_provider(provider_id, model)


def build_ui():
    registry, _ = get_services()
    try:
        selection = registry.get_selection()
    except ConfigurationError as exc:
        raise SystemExit(str(exc)) from exc
    provider_choices = _provider_choices(registry)
    models = next(
        i.models for i in registry.list_available_providers() if i.provider == selection.provider
    )
    templates = list_templates()

    with gr.Blocks(title=APP_TITLE) as demo:
        gr.Markdown(f"# {APP_TITLE}\nUpload a resume, refine it with AI and restyle the preview.")
        resume_state = gr.State(None)
        styles_state = gr.State(default_styles(templates[0]))

        with gr.Row():
            provider = gr.Dropdown(
                label="AI provider", choices=provider_choices, value=selection.provider.value
            )
            model = gr.Dropdown(label="Model", choices=list(models), value=selection.model)
            template = gr.Dropdown(label="Template", choices=templates, value=templates[0])

        with gr.Row():
            with gr.Column():
                upload = gr.File(
                    label="Upload resume", file_types=list(SUPPORTED_EXTENSIONS), type="filepath"
                )
                extract_btn = gr.Button("Extract")
                improve_text = gr.Textbox(
                    label="Improve content",
                    lines=3,
                    placeholder="e.g. Rewrite summary to be more impactful",
                )
                improve_btn = gr.Button("Improve with AI")
                style_text = gr.Textbox(
                    label="Customize styles", lines=2, placeholder="e.g. Use a navy accent color"
                )
                style_btn = gr.Button("Apply styles")
                status = gr.Textbox(label="Status", interactive=False)
            with gr.Column():
                preview = gr.HTML(label="Preview")
                resume_json = gr.Code(label="Resume JSON", language="json", interactive=True)
                apply_btn = gr.Button("Apply edits")

        provider.change(fn=handle_provider_change, inputs=provider, outputs=model)
        model.change(fn=handle_model_change, inputs=[provider, model], outputs=None)
        template.change(
            fn=handle_template, inputs=[template, resume_state], outputs=[styles_state, preview]
        )
        extract_btn.click(
            fn=handle_upload,
            inputs=[upload, template],
            outputs=[resume_state, styles_state, resume_json, preview, status],
        )
        improve_btn.click(
            fn=handle_improve,
            inputs=[resume_state, improve_text, template, styles_state],
            outputs=[resume_state, resume_json, preview, status],
        )
        apply_btn.click(
            fn=handle_apply_edits,
            inputs=[resume_json, resume_state, template, styles_state],
            outputs=[resume_state, resume_json, preview, status],
        )
        style_btn.click(
            fn=handle_styles,
            inputs=[styles_state, style_text, resume_state, template],
            outputs=[styles_state, preview, status],
        )

    return demo


if __name__ == "__main__":
    app = build_ui()
    app.launch(
        server_name="0.0.0.0",
        server_port=int(os.getenv("PORT", "7860")),
    )
