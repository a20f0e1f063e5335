"""Layout policy and geometry for picker panels.

``compute_layout`` is a pure function of terminal size and configuration. It
places the prompt, list, preview, and optional file-info panels, chooses the
border glyphs that make touching panels read as one connected frame, and
derives the scrollbar column. Rects use frame coordinates: ``(col, row)`` is
the 0-based top-left corner of the bordered frame and ``width``/``height``
are the content size inside it.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass

from .config import (
    PREVIEW_POSITIONS,
    PROMPT_POSITIONS,
    PickerConfig,
    is_one_of,
    is_valid_ratio,
    resolve_config_value,
)

BORDER_SIZE = 2
PROMPT_HEIGHT = 2
SEPARATOR_WIDTH = 2
SEPARATOR_HEIGHT = 1
FILE_INFO_HEIGHT = 10
MIN_PREVIEW_HEIGHT = 3
MIN_LIST_WIDTH = 10
MIN_LIST_HEIGHT = 3
AUTO_PREVIEW_WIDTH_THRESHOLD = 120

# topleft, top, topright, right, botright, bottom, botleft, left
BORDER_PRESETS: dict[str, tuple[str, ...]] = {
    "single": ("┌", "─", "┐", "│", "┘", "─", "└", "│"),
    "double": ("╔", "═", "╗", "║", "╝", "═", "╚", "║"),
    "rounded": ("╭", "─", "╮", "│", "╯", "─", "╰", "│"),
    "solid": ("▛", "▀", "▜", "▐", "▟", "▄", "▙", "▌"),
    "shadow": ("", "", " ", " ", " ", " ", " ", ""),
    "none": ("", "", "", "", "", "", "", ""),
}

# left, right
T_JUNCTION_PRESETS: dict[str, tuple[str, str]] = {
    "single": ("├", "┤"),
    "double": ("╠", "╣"),
    "rounded": ("├", "┤"),
    "solid": ("▌", "▐"),
    "shadow": ("", ""),
    "none": ("", ""),
}


@dataclass(frozen=True)
class Rect:
    col: int
    row: int
    width: int
    height: int

    @property
    def content_col(self) -> int:
        return self.col + 1

    @property
    def content_row(self) -> int:
        return self.row + 1


@dataclass(frozen=True)
class PanelGeometry:
    rect: Rect
    border: tuple[str, ...]
    title: str | None = None


@dataclass(frozen=True)
class Geometry:
    """Placement of every picker panel for one terminal size."""

    input: PanelGeometry
    list: PanelGeometry
    preview: PanelGeometry | None
    file_info: PanelGeometry | None
    scrollbar: Rect
    prompt_position: str
    preview_position: str

    def panels(self) -> dict[str, PanelGeometry]:
        out = {"input": self.input, "list": self.list}
        if self.preview is not None:
            out["preview"] = self.preview
        if self.file_info is not None:
            out["file_info"] = self.file_info
        return out


def border_chars(style: str) -> tuple[tuple[str, ...], tuple[str, str]]:
    """Return ``(border, t_junctions)`` for ``style``, defaulting to single."""
    if style in BORDER_PRESETS:
        return BORDER_PRESETS[style], T_JUNCTION_PRESETS[style]
    return BORDER_PRESETS["single"], T_JUNCTION_PRESETS["single"]


def layout_is_viable(geometry: Geometry) -> bool:
    """Return whether the list panel is large enough to be usable."""
    rect = geometry.list.rect
    return rect.width >= MIN_LIST_WIDTH and rect.height >= MIN_LIST_HEIGHT


@dataclass
class _Dimensions:
    """Mutable scratch values while panels are positioned."""

    list_col: int = 0
    list_row: int = 0
    list_width: int = 0
    list_height: int = 0
    input_col: int = 0
    input_row: int = 0
    input_width: int = 0
    preview: list[int] | None = None  # col, row, width, height
    file_info: list[int] | None = None


def _calculate_dimensions(
    *,
    total_width: int,
    total_height: int,
    start_col: int,
    start_row: int,
    preview_position: str,
    prompt_position: str,
    preview_enabled: bool,
    debug_enabled: bool,
    preview_width: int,
    preview_height: int,
) -> _Dimensions:
    """Place panel frames so together they fill exactly ``total_width`` x ``total_height``.

    Side-by-side panels each keep both borders; stacked panels share the
    border row between them.
    """
    dims = _Dimensions()
    inner_width = max(0, total_width - BORDER_SIZE)
    inner_height = max(0, total_height - BORDER_SIZE - PROMPT_HEIGHT)

    if preview_position in ("left", "right"):
        separator = SEPARATOR_WIDTH if preview_enabled else 0
        dims.list_width = max(0, inner_width - preview_width - separator)
        dims.list_height = inner_height
        if preview_position == "left":
            preview_col = start_col
            dims.list_col = start_col + preview_width + separator
        else:
            dims.list_col = start_col
            preview_col = start_col + dims.list_width + separator
        dims.input_col = dims.list_col
        dims.input_width = dims.list_width
        if prompt_position == "top":
            dims.input_row = start_row
            dims.list_row = start_row + PROMPT_HEIGHT
        else:
            dims.list_row = start_row
            dims.input_row = start_row + dims.list_height + 1
        if preview_enabled:
            dims.preview = [preview_col, start_row, preview_width, max(0, total_height - BORDER_SIZE)]
    else:
        separator = SEPARATOR_HEIGHT if preview_enabled else 0
        dims.list_width = inner_width
        dims.list_height = max(0, inner_height - preview_height - separator)
        dims.list_col = start_col
        dims.input_col = start_col
        dims.input_width = inner_width
        region_row = start_row
        if preview_position == "top" and preview_enabled:
            dims.preview = [start_col, start_row, inner_width, preview_height]
            region_row = start_row + preview_height + separator
        if prompt_position == "top":
            dims.input_row = region_row
            dims.list_row = region_row + PROMPT_HEIGHT
        else:
            dims.list_row = region_row
            dims.input_row = region_row + dims.list_height + 1
        if preview_position == "bottom" and preview_enabled:
            if prompt_position == "top":
                preview_row = dims.list_row + dims.list_height + 1
            else:
                preview_row = dims.input_row + PROMPT_HEIGHT
            dims.preview = [start_col, preview_row, inner_width, preview_height]

    if debug_enabled and preview_enabled and dims.preview is not None:
        preview_col, preview_row, preview_w, preview_h = dims.preview
        dims.file_info = [preview_col, preview_row, preview_w, FILE_INFO_HEIGHT]
        dims.preview[1] = preview_row + FILE_INFO_HEIGHT + SEPARATOR_HEIGHT
        dims.preview[3] = max(MIN_PREVIEW_HEIGHT, preview_h - FILE_INFO_HEIGHT - SEPARATOR_HEIGHT)

    return dims


def resolve_prompt_position(
    config: PickerConfig,
    terminal_width: int,
    terminal_height: int,
    on_invalid: Callable[[str], None] | None = None,
) -> str:
    """Resolve the raw configured prompt position, before any forcing."""
    return resolve_config_value(
        config.layout.prompt_position,
        terminal_width,
        terminal_height,
        is_one_of(PROMPT_POSITIONS),
        "bottom",
        "layout.prompt_position",
        on_invalid,
    )


def resolve_preview_position(
    config: PickerConfig,
    terminal_width: int,
    terminal_height: int,
    on_invalid: Callable[[str], None] | None = None,
) -> str:
    """Resolve preview position, mapping ``auto`` by picker width."""
    raw = resolve_config_value(
        config.layout.preview_position,
        terminal_width,
        terminal_height,
        is_one_of(PREVIEW_POSITIONS),
        "auto",
        "layout.preview_position",
        on_invalid,
    )
    if raw != "auto":
        return raw
    width_ratio = resolve_config_value(
        config.layout.width, terminal_width, terminal_height, is_valid_ratio, 0.8, "layout.width"
    )
    picker_width = math.floor(terminal_width * width_ratio)
    return "bottom" if picker_width < AUTO_PREVIEW_WIDTH_THRESHOLD else "right"


def compute_layout(
    total_width: int,
    total_height: int,
    config: PickerConfig,
    *,
    preview_enabled: bool | None = None,
    on_invalid: Callable[[str], None] | None = None,
) -> Geometry:
    """Compute panel geometry, borders, and titles for a terminal size."""
    total_width = max(0, total_width)
    total_height = max(0, total_height)
    if preview_enabled is None:
        preview_enabled = config.preview_enabled
    debug_enabled = preview_enabled and config.show_file_info

    width_ratio = resolve_config_value(
        config.layout.width, total_width, total_height, is_valid_ratio, 0.8, "layout.width", on_invalid
    )
    height_ratio = resolve_config_value(
        config.layout.height, total_width, total_height, is_valid_ratio, 0.8, "layout.height", on_invalid
    )
    width = math.floor(total_width * width_ratio)
    height = math.floor(total_height * height_ratio)

    col_ratio = resolve_config_value(
        config.layout.col,
        total_width,
        total_height,
        lambda value: isinstance(value, (int, float)) and not isinstance(value, bool) and 0 <= value <= 1,
        0.5 - (width_ratio / 2),
        "layout.col",
        on_invalid,
    )
    row_ratio = resolve_config_value(
        config.layout.row,
        total_width,
        total_height,
        lambda value: isinstance(value, (int, float)) and not isinstance(value, bool) and 0 <= value <= 1,
        0.5 - (height_ratio / 2),
        "layout.row",
        on_invalid,
    )
    start_col = math.floor(total_width * col_ratio)
    start_row = math.floor(total_height * row_ratio)

    prompt_position = resolve_prompt_position(config, total_width, total_height, on_invalid)
    preview_position = resolve_preview_position(config, total_width, total_height, on_invalid)

    # The list panel is always sandwiched between prompt and a vertical preview.
    if preview_enabled:
        if preview_position == "bottom":
            prompt_position = "top"
        elif preview_position == "top":
            prompt_position = "bottom"

    preview_size = resolve_config_value(
        config.layout.preview_size,
        total_width,
        total_height,
        is_valid_ratio,
        0.4,
        "layout.preview_size",
        on_invalid,
    )

    dims = _calculate_dimensions(
        total_width=width,
        total_height=height,
        start_col=start_col,
        start_row=start_row,
        preview_position=preview_position,
        prompt_position=prompt_position,
        preview_enabled=preview_enabled,
        debug_enabled=debug_enabled,
        preview_width=math.floor(width * preview_size) if preview_enabled else 0,
        preview_height=math.floor(height * preview_size) if preview_enabled else 0,
    )

    border, junctions = border_chars(config.border_style)
    left_t, right_t = junctions
    title = f" {config.title} "
    connected_top = (left_t, border[1], right_t, border[3], border[4], border[5], border[6], border[7])
    open_bottom = (border[0], border[1], border[2], border[3], "", "", "", border[7])
    joined_open_bottom = (left_t, border[1], right_t, border[3], "", "", "", border[7])

    vertical_preview = preview_enabled and preview_position in ("top", "bottom")
    if vertical_preview:
        list_border = joined_open_bottom
    elif prompt_position == "bottom":
        list_border = open_bottom
    else:
        list_border = connected_top

    list_title = title if prompt_position == "bottom" and preview_position != "top" else None
    input_border = connected_top if prompt_position == "bottom" else open_bottom
    input_title = title if prompt_position == "top" else None

    preview_geometry: PanelGeometry | None = None
    if dims.preview is not None:
        preview_border: tuple[str, ...] = border
        preview_title = " Preview "
        if preview_position == "bottom":
            preview_border = connected_top
        elif preview_position == "top":
            preview_border = open_bottom
            preview_title = title
        if dims.file_info is not None:
            preview_border = joined_open_bottom if preview_position == "top" else connected_top
        preview_geometry = PanelGeometry(
            rect=Rect(*(max(0, value) for value in dims.preview)),
            border=preview_border,
            title=preview_title,
        )

    file_info_geometry: PanelGeometry | None = None
    if dims.file_info is not None:
        # The preview panel draws the border row below file info.
        file_info_border = joined_open_bottom if preview_position == "bottom" else open_bottom
        file_info_geometry = PanelGeometry(
            rect=Rect(*(max(0, value) for value in dims.file_info)),
            border=file_info_border,
            title=" File Info ",
        )

    list_rect = Rect(max(0, dims.list_col), max(0, dims.list_row), dims.list_width, dims.list_height)
    return Geometry(
        input=PanelGeometry(
            rect=Rect(max(0, dims.input_col), max(0, dims.input_row), dims.input_width, 1),
            border=input_border,
            title=input_title,
        ),
        list=PanelGeometry(rect=list_rect, border=list_border, title=list_title),
        preview=preview_geometry,
        file_info=file_info_geometry,
        scrollbar=Rect(list_rect.col + list_rect.width + 1, list_rect.row + 1, 1, list_rect.height),
        prompt_position=prompt_position,
        preview_position=preview_position,
    )
