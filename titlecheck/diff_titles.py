from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from .identify import fold_char
from .models import Config, RichCell, Run

DIFF_FONT_PT = 14.0
CURRENT_RGB = "FFFF0000"
CORRECT_RGB = "FF00B050"


@dataclass(frozen=True)
class HighlightStyle:
    emphasis_size_pt: float = DIFF_FONT_PT
    current_color: str = CURRENT_RGB
    correct_color: str = CORRECT_RGB

    @classmethod
    def from_config(cls, config: Optional[Config]) -> "HighlightStyle":
        cfg = (config or {}).get("highlight") or {}
        return cls(
            emphasis_size_pt=float(cfg.get("emphasis_size_pt", DIFF_FONT_PT)),
            current_color=str(cfg.get("current_color", CURRENT_RGB)).upper(),
            correct_color=str(cfg.get("correct_color", CORRECT_RGB)).upper(),
        )


def common_affixes(a: str, b: str) -> Tuple[int, int]:
    """Case-insensitive shared prefix and suffix lengths, with pre + suf <= min(len)."""
    n = min(len(a), len(b))
    pre = 0
    while pre < n and fold_char(a[pre]) == fold_char(b[pre]):
        pre += 1
    suf = 0
    while suf < n - pre and fold_char(a[-1 - suf]) == fold_char(b[-1 - suf]):
        suf += 1
    return pre, suf


def highlight(current: str, correct: str, style: HighlightStyle = HighlightStyle()) -> Tuple[List[Run], List[Run]]:
    current = current or ""
    correct = correct or ""
    pre, suf = common_affixes(current, correct)

    cur_runs: List[Run] = []
    cor_runs: List[Run] = []
    if pre:
        cur_runs.append(Run(current[:pre]))
        cor_runs.append(Run(correct[:pre]))

    cur_mid = current[pre:len(current) - suf]
    cor_mid = correct[pre:len(correct) - suf]
    if cur_mid:
        cur_runs.append(Run(cur_mid, bold=True, size_pt=style.emphasis_size_pt, color_rgb=style.current_color))
    if cor_mid:
        cor_runs.append(Run(cor_mid, bold=True, size_pt=style.emphasis_size_pt, color_rgb=style.correct_color))

    if suf:
        cur_runs.append(Run(current[len(current) - suf:]))
        cor_runs.append(Run(correct[len(correct) - suf:]))

    if not cur_runs:
        cur_runs.append(Run(current))
    if not cor_runs:
        cor_runs.append(Run(correct))
    return cur_runs, cor_runs


def make_highlighted_pair(current: str, correct: str, style: HighlightStyle = HighlightStyle()) -> Tuple[RichCell, RichCell]:
    cur_runs, cor_runs = highlight(current, correct, style)
    return RichCell(tuple(cur_runs)), RichCell(tuple(cor_runs))
