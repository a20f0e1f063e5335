"""UI theme definitions and selection helpers.

Themes map the semantic style tags used in rendered ranges to ANSI SGR
sequences. Syntax highlighting style for previews remains a separate setting.
"""

from __future__ import annotations

from dataclasses import dataclass, fields


@dataclass(frozen=True)
class UITheme:
    """Semantic ANSI palette used by the terminal host."""

    name: str
    reset: str
    border: str
    title: str
    prompt: str
    cursor: str
    selected_marker: str
    directory: str
    location: str
    score: str
    combo_header: str
    combo_item: str
    suggestion_header: str
    dim: str
    tip: str
    status: str
    warning: str
    grep_plain: str
    grep_regex: str
    grep_fuzzy: str
    line_number: str
    preview_location: str
    scrollbar_thumb: str
    scrollbar_track: str
    notice_info: str
    notice_warn: str
    notice_error: str

    def style(self, tag: str) -> str:
        """Return the SGR sequence for a style tag, empty when unknown."""
        if tag in _STYLE_TAGS:
            return getattr(self, tag)
        return ""


_STYLE_TAGS = frozenset(field.name for field in fields(UITheme) if field.name not in {"name", "reset"})


DEFAULT_THEME = UITheme(
    name="default",
    reset="\033[0m",
    border="\033[38;5;244m",
    title="\033[1;38;5;81m",
    prompt="\033[1;38;5;81m",
    cursor="\033[48;2;58;92;188m",
    selected_marker="\033[38;5;214m",
    directory="\033[2;38;5;250m",
    location="\033[38;5;110m",
    score="\033[2;38;5;109m",
    combo_header="\033[1;38;5;214m",
    combo_item="\033[38;5;229m",
    suggestion_header="\033[3;38;5;215m",
    dim="\033[2m",
    tip="\033[2;38;5;250m",
    status="\033[38;5;244m",
    warning="\033[38;5;214m",
    grep_plain="\033[2;38;5;250m",
    grep_regex="\033[38;5;81m",
    grep_fuzzy="\033[38;5;42m",
    line_number="\033[38;5;240m",
    preview_location="\033[48;5;236m",
    scrollbar_thumb="\033[38;5;81m",
    scrollbar_track="\033[38;5;238m",
    notice_info="\033[38;5;81m",
    notice_warn="\033[38;5;214m",
    notice_error="\033[1;38;5;203m",
)

OCEAN_THEME = UITheme(
    name="ocean",
    reset="\033[0m",
    border="\033[2;38;5;31m",
    title="\033[1;38;5;45m",
    prompt="\033[1;38;5;45m",
    cursor="\033[48;5;24m",
    selected_marker="\033[38;5;215m",
    directory="\033[2;38;5;110m",
    location="\033[38;5;117m",
    score="\033[2;38;5;73m",
    combo_header="\033[1;38;5;215m",
    combo_item="\033[38;5;153m",
    suggestion_header="\033[3;38;5;153m",
    dim="\033[2;38;5;110m",
    tip="\033[2;38;5;110m",
    status="\033[38;5;73m",
    warning="\033[38;5;215m",
    grep_plain="\033[2;38;5;110m",
    grep_regex="\033[38;5;45m",
    grep_fuzzy="\033[38;5;84m",
    line_number="\033[38;5;24m",
    preview_location="\033[48;5;17m",
    scrollbar_thumb="\033[38;5;45m",
    scrollbar_track="\033[2;38;5;24m",
    notice_info="\033[38;5;45m",
    notice_warn="\033[38;5;215m",
    notice_error="\033[1;38;5;203m",
)

PLAIN_THEME = UITheme(
    name="plain",
    reset="",
    border="",
    title="",
    prompt="",
    cursor="\033[7m",
    selected_marker="",
    directory="",
    location="",
    score="",
    combo_header="",
    combo_item="",
    suggestion_header="",
    dim="",
    tip="",
    status="",
    warning="",
    grep_plain="",
    grep_regex="",
    grep_fuzzy="",
    line_number="",
    preview_location="",
    scrollbar_thumb="",
    scrollbar_track="",
    notice_info="",
    notice_warn="",
    notice_error="",
)

_THEMES: dict[str, UITheme] = {
    DEFAULT_THEME.name: DEFAULT_THEME,
    OCEAN_THEME.name: OCEAN_THEME,
}


def available_theme_names() -> tuple[str, ...]:
    return tuple(sorted(_THEMES.keys()))


def resolve_theme(name: str | None, *, no_color: bool = False) -> UITheme:
    """Return the concrete theme for ``name``, falling back to default."""
    if no_color:
        return PLAIN_THEME
    candidate = str(name or "").strip().lower()
    return _THEMES.get(candidate, DEFAULT_THEME)
