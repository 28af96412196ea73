from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Snake_case in Python, camelCase on the wire; either is accepted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def blank_text_fields(cls, v, info):
        if cls.model_fields[info.field_name].annotation is str:
            return _coerce_text(v)
        return v

    def wire_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class PersonalInfo(WireModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    website: str = ""
    location: str = ""
    summary: str = ""


class ExperienceEntry(WireModel):
    id: str = ""
    job_title: str = ""
    company: str = ""
    location: str = ""
    start_date: str = ""
    end_date: str = ""
    description: List[str] = Field(default_factory=list)
    key_tech: str = ""

    @field_validator("description", mode="before")
    @classmethod
    def coerce_description(cls, v):
        return _coerce_bullets(v)


class EducationEntry(WireModel):
    id: str = ""
    degree: str = ""
    institution: str = ""
    location: str = ""
    grad_date: str = ""


class Certification(WireModel):
    id: str = ""
    name: str = ""


class Skill(WireModel):
    id: str = ""
    name: str = ""
    years: int = 0

    @field_validator("years", mode="before")
    @classmethod
    def coerce_years(cls, v):
        return _coerce_years(v)


class Project(WireModel):
    id: str = ""
    name: str = ""
    description: str = ""
    link: str = ""


# Id prefixes per list field, in document order.
ID_PREFIXES: Dict[str, str] = {
    "experience": "exp",
    "education": "edu",
    "certifications": "cert",
    "skills": "skill",
    "projects": "proj",
    "key_architectural_projects": "arch-proj",
}

LIST_FIELDS = tuple(ID_PREFIXES)
PERSONAL_FIELDS = tuple(PersonalInfo.model_fields)


class ResumeDocument(WireModel):
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    experience: List[ExperienceEntry] = Field(default_factory=list)
    education: List[EducationEntry] = Field(default_factory=list)
    certifications: List[Certification] = Field(default_factory=list)
    skills: List[Skill] = Field(default_factory=list)
    projects: List[Project] = Field(default_factory=list)
    key_architectural_projects: List[Project] = Field(default_factory=list)

    @field_validator("personal_info", mode="before")
    @classmethod
    def coerce_personal_info(cls, v):
        return v if isinstance(v, (dict, PersonalInfo)) else {}

    @field_validator("experience", "education", mode="before")
    @classmethod
    def coerce_records(cls, v):
        return [item for item in _coerce_list(v) if isinstance(item, (dict, BaseModel))]

    @field_validator(
        "certifications", "skills", "projects", "key_architectural_projects", mode="before"
    )
    @classmethod
    def coerce_named_items(cls, v):
        # Models sometimes answer ["Python", "SQL"] instead of [{"name": ...}].
        coerced = []
        for item in _coerce_list(v):
            if isinstance(item, (dict, BaseModel)):
                coerced.append(item)
            elif isinstance(item, str) and item.strip():
                coerced.append({"name": item.strip()})
        return coerced


class StyleOverrides(WireModel):
    container: Optional[str] = None
    header: Optional[str] = None
    name: Optional[str] = None
    contact_info: Optional[str] = None
    summary: Optional[str] = None
    section: Optional[str] = None
    section_title: Optional[str] = None
    item_header: Optional[str] = None
    item_title: Optional[str] = None
    item_subtitle: Optional[str] = None
    item_date: Optional[str] = None
    item_list: Optional[str] = None
    list_item: Optional[str] = None
    skills_list: Optional[str] = None
    skill_item: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def keep_class_strings(cls, v):
        if isinstance(v, str):
            return " ".join(v.split())
        return None

    def as_mapping(self) -> Dict[str, str]:
        """Slots that are set, keyed by their wire names."""
        return self.model_dump(by_alias=True, exclude_none=True)


STYLE_SLOTS = tuple(to_camel(name) for name in StyleOverrides.model_fields)


def _coerce_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (list, tuple)):
        return ", ".join(_coerce_text(item) for item in value if item is not None)
    return str(value)


def _coerce_list(value) -> list:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, (tuple, set)):
        return list(value)
    return [value]


def _coerce_bullets(value) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        stripped = value.strip()
        return [stripped] if stripped else []
    if isinstance(value, list):
        coerced = []
        for item in value:
            if isinstance(item, dict):
                item = item.get("text")
            text = _coerce_text(item)
            if text:
                coerced.append(text)
        return coerced
    return [str(value)]


def _coerce_years(value) -> int:
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, (int, float)):
        return max(int(value), 0)
    if isinstance(value, str):
        match = re.search(r"-?\d+", value)
        return max(int(match.group()), 0) if match else 0
    return 0
