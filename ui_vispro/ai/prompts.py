"""Provider-tuned prompt templates and sampling defaults."""

from __future__ import annotations

from typing import Any

from ui_vispro.ai.models import LMSTUDIO, OLLAMA, OPENAI, TOGETHERAI, normalize_provider_id

DEFAULT_KEY = "default"

ANALYSIS_SYSTEM_PROMPTS: dict[str, str] = {
    OPENAI: """
You are a senior UI/UX expert specializing in analyzing design mockups and converting them
into structured Next.js implementations.
Focus on these key aspects:
1. Layout structure and component hierarchy
2. Visual design elements (colors, typography, spacing)
3. Interactive elements and user flows
4. Accessibility considerations
5. Responsive design patterns

Provide a comprehensive analysis that a developer could use to implement this design
accurately using Next.js, React, TypeScript, and Tailwind CSS.
""".strip(),
    TOGETHERAI: """
UI/UX expert analysis mode. Analyze the provided design and identify:
- Primary layout structure (grid, flexbox patterns)
- Color palette (provide exact colors when possible)
- Typography system (font families, sizes, weights)
- UI component patterns (describe functionality)
- Spacing and alignment system

Be concise yet thorough. Avoid explanations of your process.
""".strip(),
    LMSTUDIO: """
As a UI specialist, analyze this design.
Identify and describe:
- Main sections
- Components
- Colors
- Typography
- Spacing
- Interactions

Structure your response with clear sections.
""".strip(),
    OLLAMA: """
Provide a structured analysis of this UI design with the following sections:
Layout, Components, Colors, Typography, Spacing, Interactions.

Be specific and detailed. Include exact measurements, color codes, and component
descriptions when possible.
""".strip(),
    DEFAULT_KEY: (
        "Analyze this UI design and provide a detailed breakdown of its components, layout, "
        "styling, and interactivity. Be specific and thorough, focusing on details that would "
        "help implement this design in code."
    ),
}

GENERATION_SYSTEM_PROMPTS: dict[str, str] = {
    OPENAI: """
You are a senior developer who specializes in creating Next.js projects based on UI design
analyses. Generate detailed, production-ready component files with the file name as a
markdown heading and the code in a code block.
Each component should be fully functional and include:
- TypeScript with proper type definitions
- Tailwind CSS for styling
- Modern React patterns including hooks
- Framer Motion for animations
- Accessibility features (ARIA attributes, semantic HTML)
- Responsive design considerations

Format each file as:
# ComponentName.tsx
Description of the component's purpose and usage
```tsx
// Code here
```
""".strip(),
    TOGETHERAI: """
Next.js TypeScript developer mode. Generate complete, production-ready code files based on
a UI design analysis.
Each file must include:
- Full imports section
- TypeScript types for props
- Tailwind classes for styling
- Comments for complex logic
- Export statement

Use this format for each file:
# filename.tsx
```tsx
// code
```
""".strip(),
    LMSTUDIO: """
Generate React component files for Next.js based on the design analysis.
Each file should use TypeScript and Tailwind, be properly structured and include
the necessary imports.

Format as:
# Filename.tsx
```tsx
// Code here
```
""".strip(),
    OLLAMA: """
Create Next.js component files based on this design analysis. For each component:

1. Use the format: # ComponentName.tsx followed by a code block
2. Include imports, TypeScript types, and the full implementation
3. Use Tailwind CSS for styling
4. Make components responsive and accessible

Example format:
# Button.tsx
```tsx
// Code here
```
""".strip(),
    DEFAULT_KEY: (
        "Generate production-ready Next.js component files based on the design analysis. Use "
        "TypeScript, Tailwind CSS, and modern React practices. Format each file with a markdown "
        "heading containing only the filename, followed by a code block with the implementation."
    ),
}

REVISION_SYSTEM_PROMPT = """
You are a senior developer who specializes in creating Next.js projects based on UI design
analyses. Revise previously generated project files based on user feedback.
Keep the same file structure and headings (# filename) but update the content according to
the feedback. Return every file, including the ones that did not change.
""".strip()

_ANALYSIS_BASE = "Analyze this UI design in detail"
_GENERATION_BASE = "Based on this UI design analysis:"

OPTIMAL_PARAMETERS: dict[str, dict[str, Any]] = {
    "openai-gpt-4": {
        "temperature": 0.7,
        "max_tokens": 4000,
        "top_p": 1.0,
        "frequency_penalty": 0.2,
        "presence_penalty": 0.1,
    },
    OPENAI: {
        "temperature": 0.8,
        "max_tokens": 2000,
        "top_p": 1.0,
        "frequency_penalty": 0.3,
        "presence_penalty": 0.2,
    },
    TOGETHERAI: {
        "temperature": 0.75,
        "max_tokens": 4000,
        "top_p": 0.9,
        "top_k": 40,
        "repetition_penalty": 1.1,
    },
    LMSTUDIO: {
        "temperature": 0.8,
        "max_tokens": 2000,
        "top_p": 0.95,
        "top_k": 50,
        "repetition_penalty": 1.05,
    },
    OLLAMA: {
        "temperature": 0.7,
        "max_tokens": 2000,
        "top_p": 0.9,
        "repeat_penalty": 1.1,
    },
    DEFAULT_KEY: {
        "temperature": 0.7,
        "max_tokens": 3000,
    },
}

REVISION_DEFAULTS: dict[str, Any] = {"temperature": 0.7, "max_tokens": 4000}

# Matched as substrings of the lower-cased model id, in order.
CONTEXT_LENGTHS: tuple[tuple[str, int], ...] = (
    ("gpt-4o-mini", 128_000),
    ("gpt-4o", 128_000),
    ("gpt-4-turbo", 128_000),
    ("gpt-4", 8_192),
    ("gpt-3.5-turbo", 16_385),
    ("claude-3", 200_000),
    ("llama-3-70b", 8_192),
    ("llama-3-8b", 8_192),
    ("mixtral-8x7b", 32_768),
    ("mistral-medium", 32_768),
)
DEFAULT_CONTEXT_LENGTH = 4_096


def _key(provider_id: str) -> str:
    return normalize_provider_id(provider_id) if provider_id else DEFAULT_KEY


def system_prompt_for_analysis(provider_id: str) -> str:
    """Return the analysis system prompt for a provider."""
    return ANALYSIS_SYSTEM_PROMPTS.get(_key(provider_id), ANALYSIS_SYSTEM_PROMPTS[DEFAULT_KEY])


def system_prompt_for_generation(provider_id: str) -> str:
    """Return the generation system prompt for a provider."""
    return GENERATION_SYSTEM_PROMPTS.get(
        _key(provider_id), GENERATION_SYSTEM_PROMPTS[DEFAULT_KEY]
    )


def user_prompt_for_analysis(provider_id: str, context_text: str | None = None) -> str:
    """Build the user prompt that accompanies a design, with optional caller context."""
    context = context_text.strip() if context_text else ""
    key = _key(provider_id)
    if key == OPENAI:
        described = f"The design represents: {context}. " if context else ""
        return (
            f"{_ANALYSIS_BASE}. {described}\n"
            "Provide a comprehensive breakdown including:\n"
            "1. Overall layout structure\n"
            "2. Component hierarchy\n"
            "3. UI elements and their functionality\n"
            "4. Color scheme and typography\n"
            "5. Spacing and alignment patterns\n"
            "6. Responsive design considerations"
        )
    if key == TOGETHERAI:
        return (
            f"{_ANALYSIS_BASE}: {context or 'Shown in the image'}.\n"
            "Extract the following:\n"
            "- Layout grid system\n"
            "- Component structure\n"
            "- Color palette (with hex codes if visible)\n"
            "- Typography styles\n"
            "- UI patterns\n"
            "- Interactive elements"
        )
    if key == LMSTUDIO:
        described = f" Description: {context}." if context else ""
        return (
            f"{_ANALYSIS_BASE}.{described}\n"
            "List all visual elements, layout structure, colors, and components that would be "
            "needed to recreate this design in code."
        )
    if key == OLLAMA:
        described = f" Context: {context}." if context else ""
        return (
            f"{_ANALYSIS_BASE}.{described}\n"
            "Create a detailed inventory of all UI elements and their styling properties."
        )
    described = f" Description: {context}." if context else ""
    return f"{_ANALYSIS_BASE}.{described}"


def user_prompt_for_generation(provider_id: str, analysis_text: str) -> str:
    """Build the user prompt asking for project files from an analysis."""
    head = f"{_GENERATION_BASE}\n\n{analysis_text.strip()}\n\n"
    key = _key(provider_id)
    if key == OPENAI:
        return head + (
            "Generate complete, production-ready Next.js component files that would implement "
            "this design.\n"
            "Use TypeScript, Tailwind CSS, and include Framer Motion animations "
            "where appropriate.\n"
            "Focus on creating reusable, accessible components with proper types and props.\n"
            "For each file, provide:\n"
            "1. The filename as a markdown heading (e.g., # ComponentName.tsx)\n"
            "2. A brief description of the component's purpose\n"
            "3. The complete code in a code block\n\n"
            "Start with the main page component and then create all necessary sub-components."
        )
    if key == TOGETHERAI:
        return head + (
            "Create Next.js TypeScript files to implement this design. For each file:\n"
            "- Use Tailwind CSS for styling\n"
            "- Include proper TypeScript types\n"
            "- Follow React best practices\n"
            '- Format as "# filename.tsx" followed by a code block'
        )
    if key == LMSTUDIO:
        return head + (
            "Generate the necessary React components to implement this UI. Each component should:\n"
            "- Be a complete TypeScript file\n"
            "- Use Tailwind for styling\n"
            "- Include a proper props interface\n"
            "- Have basic comments explaining functionality\n"
            "- Use markdown headings for filenames"
        )
    if key == OLLAMA:
        return head + (
            "Create React components that implement this design using Next.js, TypeScript and "
            'Tailwind CSS.\nFormat each component with "# filename.tsx" and code in '
            "triple backticks."
        )
    return head + (
        "Generate the React components needed to implement this design using Next.js, "
        "TypeScript, and Tailwind CSS."
    )


def system_prompt_for_revision() -> str:
    return REVISION_SYSTEM_PROMPT


def user_prompt_for_revision(serialized_files: str, feedback: str) -> str:
    """Build the revision request from serialized files and user feedback."""
    return (
        f"Original files:\n\n{serialized_files}\n\n"
        f"User feedback: {feedback.strip()}\n\n"
        "Please provide revised versions of these files."
    )


def optimal_parameters(provider_id: str, model_id: str | None = None) -> dict[str, Any]:
    """Return provider-tuned sampling defaults as a fresh dict."""
    key = _key(provider_id)
    if key == OPENAI and model_id and "gpt-4" in model_id.lower():
        return dict(OPTIMAL_PARAMETERS["openai-gpt-4"])
    return dict(OPTIMAL_PARAMETERS.get(key, OPTIMAL_PARAMETERS[DEFAULT_KEY]))


def resolve_parameters(
    provider_id: str,
    model_id: str | None,
    *,
    temperature: float | None,
    max_tokens: int | None,
    defaults: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Merge caller overrides into provider defaults; explicit zeros still win."""
    params = optimal_parameters(provider_id, model_id)
    if defaults:
        params.update(defaults)
    if temperature is not None:
        params["temperature"] = temperature
    if max_tokens is not None:
        params["max_tokens"] = max_tokens
    return params


def max_context_tokens(model_id: str) -> int:
    """Best-known context window for a model id."""
    lowered = model_id.lower()
    for known, length in CONTEXT_LENGTHS:
        if known in lowered:
            return length
    return DEFAULT_CONTEXT_LENGTH
