from __future__ import annotations

from typing import Any

import numpy as np

from . import config


def _edge_indices(length: int) -> tuple[list[int], list[int], bool]:
    edge = config.settings.edge_items
    if length <= edge * 2:
        return list(range(length)), [], False
    head = list(range(edge))
    tail = list(range(length - edge, length))
    return head, tail, True


def _format_value(value: Any) -> str:
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def _format_entries(get: Any, head: list[int], tail: list[int], truncated: bool) -> str:
    entries = [_format_value(get(k)) for k in head]
    if truncated:
        entries.append("...")
    entries.extend(_format_value(get(k)) for k in tail)
    return " ".join(entries)


def container_str(self: Any) -> str:
    shape = self.shape
    header = f"{self.value_type()!r}(shape={shape})"

    if len(shape) == 1:
        if shape[0] == 0:
            return header + "\n[]"
        head, tail, truncated = _edge_indices(shape[0])
        return header + "\n[" + _format_entries(self.get, head, tail, truncated) + "]"

    rows, cols = shape
    if rows == 0 or cols == 0:
        return header + "\n[]"

    row_head, row_tail, rows_truncated = _edge_indices(rows)
    col_head, col_tail, cols_truncated = _edge_indices(cols)

    def _row(i: int) -> str:
        return _format_entries(lambda j: self.get(i, j), col_head, col_tail, cols_truncated)

    lines = [header, "["]
    lines.extend(f" [{_row(i)}]" for i in row_head)
    if rows_truncated:
        lines.append(" ...")
    lines.extend(f" [{_row(i)}]" for i in row_tail)
    lines.append("]")
    return "\n".join(lines)


class ContainerFormatMixin:
    def __str__(self) -> str:
        return container_str(self)

    def __repr__(self) -> str:
        return f"<{self.value_type()!r} shape={self.shape}>"
