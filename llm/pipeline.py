from __future__ import annotations

import json
import logging
from typing import Optional

from pydantic import ValidationError

from schemas.resume import STYLE_SLOTS, ResumeDocument, StyleOverrides

from .client import DEFAULT_RETRY, RequestDispatcher, ResponseFormat, RetryPolicy
from .errors import (
    ConfigurationError,
    MalformedResponseError,
    ProviderError,
    ResumeAIError,
    StyleGenerationError,
)
from .normalize import apply_loss_guard, assign_ids, merge_styles
from .parsing import extract_json_object
from .prompts import EXTRACTION_PROMPT, REVISION_PROMPT, STYLE_PROMPT, format_section_aliases
from .registry import ProviderRegistry

logger = logging.getLogger(__name__)


def extract_resume(
    raw_text: str,
    registry: ProviderRegistry,
    dispatcher: RequestDispatcher,
    *,
    retry: Optional[RetryPolicy] = DEFAULT_RETRY,
) -> ResumeDocument:
    """
    Turn resume prose into a ResumeDocument.

    Transport failures surface as TransportError (with the provider name) after
    the retry policy is exhausted; unparseable output raises
    MalformedResponseError immediately. Ids are always assigned here, never
    taken from the model.
    """
    if not raw_text or not raw_text.strip():
        raise ValueError("Resume text is empty.")
    selection = registry.get_selection()
    prompt = EXTRACTION_PROMPT.format(
        section_aliases=format_section_aliases(), resume_text=raw_text.strip()
    )
    raw = dispatcher.dispatch(
        selection.provider, selection.model, prompt, ResponseFormat.JSON, retry=retry
    )
    document = _validate_document(raw)
    logger.info(
        "Extracted resume via %s/%s: %s experience, %s education, %s skills",
        selection.provider.value,
        selection.model,
        len(document.experience),
        len(document.education),
        len(document.skills),
    )
    return assign_ids(document)


def revise_content(
    current: ResumeDocument,
    instructions: str,
    registry: ProviderRegistry,
    dispatcher: RequestDispatcher,
) -> ResumeDocument:
    """
    Ask the model to improve wording. Never loses data: any failure returns the
    untouched snapshot, and sections the model emptied are restored.
    """
    if not instructions or not instructions.strip():
        raise ValueError("Revision instructions are empty.")
    snapshot = current.model_copy(deep=True)
    try:
        selection = registry.get_selection()
        prompt = REVISION_PROMPT.format(
            resume_json=json.dumps(snapshot.wire_dict(), indent=2),
            instructions=instructions.strip(),
        )
        raw = dispatcher.dispatch(
            selection.provider, selection.model, prompt, ResponseFormat.JSON
        )
        revised = _validate_document(raw)
    except (ConfigurationError, ProviderError, MalformedResponseError) as exc:
        logger.warning("Content revision failed, keeping previous resume: %s", exc)
        return snapshot
    return apply_loss_guard(snapshot, revised)


def revise_styles(
    current: StyleOverrides,
    instructions: str,
    registry: ProviderRegistry,
    dispatcher: RequestDispatcher,
) -> StyleOverrides:
    if not instructions or not instructions.strip():
        raise ValueError("Style instructions are empty.")
    provider_name = None
    try:
        selection = registry.get_selection()
        provider_name = selection.provider.value
        prompt = STYLE_PROMPT.format(
            styles_json=json.dumps(current.as_mapping(), indent=2),
            slots=", ".join(STYLE_SLOTS),
            instructions=instructions.strip(),
        )
        raw = dispatcher.dispatch(
            selection.provider, selection.model, prompt, ResponseFormat.JSON
        )
        returned = extract_json_object(raw)
    except ResumeAIError as exc:
        raise StyleGenerationError(str(exc), provider=provider_name) from exc
    return merge_styles(current, returned)


def _validate_document(raw: str) -> ResumeDocument:
    data = extract_json_object(raw)
    try:
        return ResumeDocument.model_validate(data)
    except ValidationError as exc:
        raise MalformedResponseError(f"Model JSON does not fit the resume shape: {exc}", raw) from exc
