"""Prompt construction for narrative commentary enhancement.

The user message embeds the factual sentence verbatim with an instruction not
to modify it, followed by the sampled line memos as a numbered list delimited
by ``BEGIN_LINE_MEMOS`` / ``END_LINE_MEMOS`` markers.
"""

from __future__ import annotations

from collections.abc import Sequence

MEMOS_BEGIN = "BEGIN_LINE_MEMOS"
MEMOS_END = "END_LINE_MEMOS"

_TEMPLATE = """\
You are a senior finance analyst writing executive variance commentary. Below is a \
system-generated factual sentence about a spend variance, followed by Line Memos from \
the rows driving the top 85% of variance for this category.

FACTUAL SENTENCE (DO NOT MODIFY THIS):
"{factual_sentence}"

LINE MEMOS FROM TOP VARIANCE ROWS:
{begin}
{memo_list}
{end}

YOUR TASK:
Write 1-2 additional sentences that provide executive-level context based ONLY on \
patterns you see in the Line Memos. Focus on: what types of spend are driving the \
variance (renewals, consulting engagements, cloud costs, travel patterns, etc.), which \
departments appear most, and any notable patterns (reclassifications, intercompany \
charges, scope changes). Be specific but concise. Do NOT repeat the factual sentence. \
Do NOT include dollar amounts or other figures already stated. Write in a professional \
finance tone."""


def format_memo_list(memos: Sequence[str]) -> str:
    """Render memos as ``1. first`` / ``2. second`` lines."""

    return "\n".join(f"{i}. {memo}" for i, memo in enumerate(memos, start=1))


def build_enhancement_prompt(factual_sentence: str, memos: Sequence[str]) -> str:
    if not memos:
        raise ValueError("at least one line memo is required to build an enhancement prompt")
    return _TEMPLATE.format(
        factual_sentence=factual_sentence,
        begin=MEMOS_BEGIN,
        memo_list=format_memo_list(memos),
        end=MEMOS_END,
    )


__all__ = ["MEMOS_BEGIN", "MEMOS_END", "build_enhancement_prompt", "format_memo_list"]
