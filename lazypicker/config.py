"""Persistent JSON config and the typed ``PickerConfig`` built from it.

Stores layout ratios, preview/debug toggles, history tuning, and content
search modes. Malformed or missing config falls back
to defaults key by key.
"""

from __future__ import annotations

import json
import os
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from pathlib import Path

from platformdirs import user_config_dir

APP_NAME = "lazypicker"
CONFIG_FILENAME = "config.json"
CONFIG_ENV_VAR = "LAZYPICKER_CONFIG"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
CONFIG_PATH = DEFAULT_CONFIG_PATH

PROMPT_POSITIONS = ("top", "bottom")
PREVIEW_POSITIONS = ("auto", "left", "right", "top", "bottom")
GREP_MODES = ("plain", "regex", "fuzzy")

# Either a constant or a function of (terminal_width, terminal_height).
ConfigValue = object


def _config_path() -> Path:
    override = os.environ.get(CONFIG_ENV_VAR, "").strip()
    if override:
        return Path(override).expanduser()
    return CONFIG_PATH


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(_config_path().read_text(encoding="utf-8"))
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def is_valid_ratio(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and 0 < value <= 1


def is_one_of(choices: tuple[str, ...]) -> Callable[[object], bool]:
    return lambda value: isinstance(value, str) and value in choices


def resolve_config_value(
    value: ConfigValue,
    terminal_width: int,
    terminal_height: int,
    validate: Callable[[object], bool],
    default: object,
    name: str,
    on_invalid: Callable[[str], None] | None = None,
) -> object:
    """Resolve a constant-or-callable config value against terminal size.

    Callables receive ``(terminal_width, terminal_height)``. Values that raise
    or fail ``validate`` fall back to ``default`` and are reported through
    ``on_invalid``.
    """
    if value is None:
        return default
    resolved = value
    if callable(value):
        try:
            resolved = value(terminal_width, terminal_height)
        except Exception as exc:
            if on_invalid is not None:
                on_invalid(f"{name}: function failed ({exc}), using default {default!r}")
            return default
    if not validate(resolved):
        if on_invalid is not None:
            on_invalid(f"{name}: invalid value {resolved!r}, using default {default!r}")
        return default
    return resolved


@dataclass(frozen=True)
class LayoutConfig:
    width: ConfigValue = 0.8
    height: ConfigValue = 0.8
    col: ConfigValue = None
    row: ConfigValue = None
    prompt_position: ConfigValue = "bottom"
    preview_position: ConfigValue = "auto"
    preview_size: ConfigValue = 0.4


@dataclass(frozen=True)
class PickerConfig:
    """Resolved picker settings with defaults for every key."""

    title: str = "Files"
    prompt: str = "> "
    max_results: int = 100
    border_style: str = "single"
    theme: str = "default"
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    preview_enabled: bool = True
    preview_debounce_ms: int = 100
    preview_style: str = "monokai"
    show_scores: bool = False
    show_file_info: bool = False
    history_enabled: bool = True
    combo_boost_multiplier: int = 100
    min_combo_count: int = 3
    grep_modes: tuple[str, ...] = GREP_MODES
    grep_smart_case: bool = True
    grep_max_matches: int = 10_000
    prefetch_margin: int = 5
    cycle_mode_key: str = "S-Tab"

    def with_overrides(self, **changes: object) -> PickerConfig:
        return replace(self, **changes)

    def with_layout(self, **changes: object) -> PickerConfig:
        return replace(self, layout=replace(self.layout, **changes))


def _section(data: dict[str, object], key: str) -> dict[str, object]:
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def _pick(source: dict[str, object], key: str, kind: type | tuple[type, ...], fallback: object) -> object:
    """Return ``source[key]`` when it has the expected JSON type.

    Booleans never satisfy numeric kinds.
    """
    value = source.get(key)
    if value is None:
        return fallback
    if isinstance(value, bool) and kind is not bool:
        return fallback
    if not isinstance(value, kind):
        return fallback
    return value


def picker_config_from_dict(data: dict[str, object]) -> PickerConfig:
    """Build ``PickerConfig`` from a decoded JSON object."""
    defaults = PickerConfig()
    layout_data = _section(data, "layout")
    preview_data = _section(data, "preview")
    debug_data = _section(data, "debug")
    history_data = _section(data, "history")
    grep_data = _section(data, "grep")
    pagination_data = _section(data, "pagination")

    default_layout = defaults.layout
    layout = LayoutConfig(
        width=_pick(layout_data, "width", (int, float), default_layout.width),
        height=_pick(layout_data, "height", (int, float), default_layout.height),
        col=_pick(layout_data, "col", (int, float), default_layout.col),
        row=_pick(layout_data, "row", (int, float), default_layout.row),
        prompt_position=_pick(layout_data, "prompt_position", str, default_layout.prompt_position),
        preview_position=_pick(layout_data, "preview_position", str, default_layout.preview_position),
        preview_size=_pick(layout_data, "preview_size", (int, float), default_layout.preview_size),
    )

    raw_modes = grep_data.get("modes")
    grep_modes = defaults.grep_modes
    if isinstance(raw_modes, list):
        filtered = tuple(mode for mode in raw_modes if isinstance(mode, str) and mode in GREP_MODES)
        if filtered:
            grep_modes = filtered

    return PickerConfig(
        title=_pick(data, "title", str, defaults.title),
        prompt=_pick(data, "prompt", str, defaults.prompt),
        max_results=max(1, _pick(data, "max_results", int, defaults.max_results)),
        border_style=_pick(data, "border_style", str, defaults.border_style),
        theme=_pick(data, "theme", str, defaults.theme),
        layout=layout,
        preview_enabled=_pick(preview_data, "enabled", bool, defaults.preview_enabled),
        preview_debounce_ms=max(0, _pick(preview_data, "debounce_ms", int, defaults.preview_debounce_ms)),
        preview_style=_pick(preview_data, "style", str, defaults.preview_style),
        show_scores=_pick(debug_data, "show_scores", bool, defaults.show_scores),
        show_file_info=_pick(debug_data, "show_file_info", bool, defaults.show_file_info),
        history_enabled=_pick(history_data, "enabled", bool, defaults.history_enabled),
        combo_boost_multiplier=max(
            1, _pick(history_data, "combo_boost_multiplier", int, defaults.combo_boost_multiplier)
        ),
        min_combo_count=max(0, _pick(history_data, "min_combo_count", int, defaults.min_combo_count)),
        grep_modes=grep_modes,
        grep_smart_case=_pick(grep_data, "smart_case", bool, defaults.grep_smart_case),
        grep_max_matches=max(1, _pick(grep_data, "max_matches", int, defaults.grep_max_matches)),
        prefetch_margin=max(0, _pick(pagination_data, "prefetch_margin", int, defaults.prefetch_margin)),
    )


def load_picker_config() -> PickerConfig:
    """Load ``PickerConfig`` from the persisted JSON file."""
    return picker_config_from_dict(load_config())
