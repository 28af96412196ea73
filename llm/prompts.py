from typing import Dict, Tuple

# Header wording seen in real resumes, mapped to the field it belongs in.
SECTION_ALIASES: Dict[str, Tuple[str, ...]] = {
    "personalInfo.summary": (
        "summary",
        "professional summary",
        "profile",
        "professional profile",
        "about me",
        "objective",
        "career objective",
        "career summary",
        "executive summary",
        "overview",
    ),
    "experience": (
        "experience",
        "work experience",
        "professional experience",
        "work history",
        "employment",
        "employment history",
        "career history",
        "relevant experience",
        "professional background",
        "positions held",
    ),
    "education": (
        "education",
        "academic background",
        "academic history",
        "academics",
        "qualifications",
        "education and training",
    ),
    "certifications": (
        "certifications",
        "certificates",
        "licenses",
        "licenses and certifications",
        "credentials",
        "professional development",
    ),
    "skills": (
        "skills",
        "technical skills",
        "core competencies",
        "competencies",
        "areas of expertise",
        "expertise",
        "technologies",
        "tech stack",
        "tools",
    ),
    "projects": (
        "projects",
        "personal projects",
        "side projects",
        "selected projects",
        "portfolio",
        "open source",
    ),
    "keyArchitecturalProjects": (
        "key architectural projects",
        "architecture projects",
        "architectural highlights",
        "key projects",
        "system design projects",
    ),
}


def format_section_aliases() -> str:
    return "\n".join(
        f'- {field}: {", ".join(repr(alias) for alias in aliases)}'
        for field, aliases in SECTION_ALIASES.items()
    )


EXTRACTION_PROMPT = """
You are a resume parser. Extract the resume into the following JSON shape and nothing else.
Shape:
{{
  "personalInfo": {{
    "name": string,
    "email": string,
    "phone": string,
    "website": string,
    "location": string,
    "summary": string
  }},
  "experience": [
    {{
      "jobTitle": string,
      "company": string,
      "location": string,
      "startDate": string,
      "endDate": string,
      "description": [string],
      "keyTech": string
    }}
  ],
  "education": [
    {{"degree": string, "institution": string, "location": string, "gradDate": string}}
  ],
  "certifications": [{{"name": string}}],
  "skills": [{{"name": string, "years": number}}],
  "projects": [{{"name": string, "description": string, "link": string}}],
  "keyArchitecturalProjects": [{{"name": string, "description": string, "link": string}}]
}}

Section headers vary between resumes. Map them to fields as follows:
{section_aliases}

Rules:
- Use ONLY information found in the resume text below; do not fabricate.
- description is an array of strings, one per bullet, in the original order.
- A line like "Engineer at Acme, 2020-2022" gives jobTitle "Engineer", company "Acme", startDate "2020", endDate "2022".
- years is a number; use 0 when unknown.
- Keep keyArchitecturalProjects separate from projects.
- If a field is missing, use an empty string or an empty array.
- Do not add id fields.
- Return ONLY JSON.
Resume text:
{resume_text}
"""


REVISION_PROMPT = """
You are an expert resume writer. Improve the resume JSON below according to the requested changes.

Current resume JSON:
{resume_json}

Requested changes:
{instructions}

Allowed edits:
- Rewrite personalInfo.summary.
- Rephrase experience description bullets (stronger action verbs, clearer outcomes) without inventing facts.

Forbidden edits:
- Do not add, remove, rename or reorder entries, and never change any "id" value.
- Do not remove sections or empty any array; return every section even if unchanged.
- Do not change names, companies, dates, degrees, links or contact details.
- Keep field names and types exactly as given; description stays an array of strings.

Return ONLY the complete JSON document.
"""


STYLE_PROMPT = """
You style a resume template with Tailwind CSS utility classes.
Each key below is a region of the template; each value is its class string.

Current styles JSON:
{styles_json}

All regions: {slots}

Requested change:
{instructions}

Rules:
- Return the COMPLETE mapping: every key from the current styles must be present.
- Keep classes that do not conflict with the request; replace only conflicting ones.
- You may add keys from the region list when the request needs them.
- Values are plain class strings.
Return ONLY JSON.
"""
