import re

from review_watch.errors import InvalidTemplate, MissingTemplate
from review_watch.models.config import PromptType


PLACEHOLDERS = ("{file_name}", "{content}", "{diff}", "{context}")

_PLACEHOLDER_RE = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")

OUTPUT_FORMAT = """## Output format

- Mark each problem with "⚠ warning:" and be specific
- Mark design suggestions with "💡 suggestion:"
- Mark critical problems with "🚨 critical:"
- If there are no problems, answer "✓ no issues"
- Be concise (5 lines or fewer)"""


DEFAULT_REVIEW_PROMPT = """Review the following code change.

File: {file_name}

```
{content}
```

## Review points (in priority order)

1. **Design and architecture**
   - Does this change belong in this file (separation of responsibilities)?
   - Does it bloat a function or module?
   - Is the abstraction appropriate?

2. **Code quality**
   - Are functions too long (more than 50 lines deserves attention)?
   - Is there duplicated code?
   - Are names appropriate?

3. **Bugs and security** (obvious problems only)
   - Potential bugs
   - Security risks

""" + OUTPUT_FORMAT


QUICK_REVIEW_PROMPT = """Briefly review the following code change.

File: {file_name}

```
{content}
```

Point out critical problems only. If there are none, answer "✓ OK".
Answer in 2 lines or fewer."""


SECURITY_REVIEW_PROMPT = """Review the following code from a security point of view.

File: {file_name}

```
{content}
```

## Checklist

1. Injection vulnerabilities (SQL, command, XSS, ...)
2. Authentication and authorization problems
3. Exposure of secrets (API keys, passwords, ...)
4. Insecure cryptography or hashing
5. Path traversal

## Output format

- 🚨 critical: serious security risk
- ⚠ warning: potential risk
- ✓ no security issues"""


ARCHITECTURE_CHECK_ITEMS = (
    "Single-responsibility violations",
    "Dependency direction",
    "Coupling between modules",
    "Placement",
    "Suggested relocation",
)

ARCHITECTURE_REVIEW_PROMPT = """Review the following code from an architecture point of view.

File: {file_name}

```
{content}
```

## Checklist

1. Single-responsibility violations: does the code mix unrelated responsibilities?
2. Dependency direction: do dependencies point the right way (no cycles, no upward imports)?
3. Coupling between modules: is coupling to other modules kept low?
4. Placement: does this code belong in this file or module?
5. Suggested relocation: if not, where should it move?

## Output format

- 💡 suggestion: better placement
- ⚠ warning: mixed responsibilities or design problems
- ✓ no structural issues"""


ARCHITECTURE_CONTEXT_PROMPT = """Review the following code from an architecture point of view, taking the project context into account.

{context}

File: {file_name}

```
{content}
```

## Checklist

1. Single-responsibility violations: does this file duplicate responsibilities of the other files in its directory?
2. Dependency direction: do dependencies point the right way, with no cycles between this file and its importers?
3. Coupling between modules: is it consistent with the files it usually changes together with?
4. Placement: does this code belong here, given the project structure?
5. Suggested relocation: if not, where in the tree should it move? Is the public API minimal?

## Output format

- 💡 suggestion: better placement
- ⚠ warning: duplicated responsibilities or design problems
- 🔄 warning: inconsistency with related files
- ✓ no structural issues"""


TEMPLATES = {
    PromptType.DEFAULT: DEFAULT_REVIEW_PROMPT,
    PromptType.QUICK: QUICK_REVIEW_PROMPT,
    PromptType.SECURITY: SECURITY_REVIEW_PROMPT,
    PromptType.ARCHITECTURE: ARCHITECTURE_REVIEW_PROMPT,
}


def find_unknown_placeholders(template: str) -> list[str]:
    """Return ``{name}`` tokens in the template that render_prompt won't substitute."""
    known = {p.strip("{}") for p in PLACEHOLDERS}
    unknown = []
    for name in _PLACEHOLDER_RE.findall(template):
        if name not in known and name not in unknown:
            unknown.append(name)
    return unknown


def validate_template(template: str) -> None:
    unknown = find_unknown_placeholders(template)
    if unknown:
        raise InvalidTemplate(unknown)


def template_for(prompt_type: PromptType, template: str | None = None, with_context: bool = False) -> str:
    if prompt_type == PromptType.CUSTOM:
        if not template:
            raise MissingTemplate()
        return template
    if with_context and prompt_type == PromptType.ARCHITECTURE:
        return ARCHITECTURE_CONTEXT_PROMPT
    return TEMPLATES[prompt_type]


def render_prompt(
    prompt_type: PromptType,
    file_name: str,
    content: str,
    diff: str = "",
    template: str | None = None,
    context: str = "",
) -> str:
    """Build the complete prompt for one file.

    Only the exact tokens ``{file_name}``, ``{content}``, ``{diff}`` and
    ``{context}`` are substituted; any other ``{...}`` text is left as is.
    Project context goes where the template puts ``{context}``, or ahead of
    the whole prompt when the template has no such token.
    """
    text = template_for(prompt_type, template, with_context=bool(context))

    # Single pass so a value containing a token is never substituted again.
    values = {"{file_name}": file_name, "{content}": content, "{diff}": diff, "{context}": context}
    pattern = "|".join(re.escape(token) for token in PLACEHOLDERS)
    prompt = re.sub(pattern, lambda m: values[m.group(0)], text)
    if context and "{context}" not in text:
        prompt = f"{context}\n\n{prompt}"
    return prompt
