"""
Barcode label sheets.

Variants without a stored barcode get a 12-digit number built from the GS1
company prefix and a 5-digit sequence, right-padded with zeros.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

import barcode
from barcode.writer import SVGWriter
from flask import render_template

from ..validation import ValidationError, parse_int

logger = logging.getLogger(__name__)

BARCODE_LENGTH = 12
SEQUENCE_WIDTH = 5
DEFAULT_GS1_PREFIX = "8901234"

SVG_OPTIONS = {"module_height": 10.0, "quiet_zone": 2.0, "write_text": False}


@dataclass
class LabelOptions:
    width_mm: int = 50
    height_mm: int = 90
    gap_mm: int = 10
    include_barcode: bool = True
    show_company: bool = True
    show_date: bool = True

    @classmethod
    def from_payload(cls, payload: dict | None) -> "LabelOptions":
        payload = payload or {}
        options = cls()
        for name in ("width_mm", "height_mm", "gap_mm"):
            if payload.get(name) is not None:
                value = parse_int(payload[name], name)
                if value < 0 or (name != "gap_mm" and value == 0):
                    raise ValidationError(f"{name} must be positive")
                setattr(options, name, value)
        for name in ("include_barcode", "show_company", "show_date"):
            if name in payload:
                setattr(options, name, bool(payload[name]))
        return options


@dataclass
class Label:
    group_name: str
    color: str
    size: str
    shop: str | None
    barcode: str
    barcode_svg: str = field(repr=False, default="")


def generate_barcode_number(prefix: str | None, sequence: int) -> str:
    prefix = (prefix or DEFAULT_GS1_PREFIX).strip()
    number = f"{prefix}{sequence:0{SEQUENCE_WIDTH}d}"
    return number.ljust(BARCODE_LENGTH, "0")


def barcode_svg(number: str) -> str:
    """
    Inline SVG for a label. 12-digit numbers are drawn as EAN-13 (the encoder
    adds the check digit); anything else as Code 128.
    """
    symbology = "ean13" if len(number) == BARCODE_LENGTH and number.isdigit() else "code128"
    code = barcode.get(symbology, number, writer=SVGWriter())
    buffer = io.BytesIO()
    code.write(buffer, options=SVG_OPTIONS)
    svg = buffer.getvalue().decode("utf-8")
    return svg[svg.index("<svg"):]


def build_labels(
    stocks: Iterable[dict],
    selections: list[dict],
    *,
    gs1_prefix: str | None = None,
    auto_sequence: int = 1,
) -> list[Label]:
    """
    Expand selections ({stock_id, color, size, copies}) into one Label per copy.

    The n-th selection without a stored barcode gets sequence auto_sequence + n.
    """
    if not isinstance(selections, list) or not selections:
        raise ValidationError("Please select at least one variant to print barcode labels")

    by_id = {stock["id"]: stock for stock in stocks}
    svg_cache: dict[str, str] = {}
    labels: list[Label] = []

    for index, selection in enumerate(selections):
        if not isinstance(selection, dict):
            raise ValidationError("selections entries must be objects")
        stock_id = parse_int(selection.get("stock_id"), "stock_id")
        stock = by_id.get(stock_id)
        if stock is None:
            raise ValidationError(f"Stock {stock_id} not found")

        color = (selection.get("color") or "").strip().casefold()
        variant = next(
            (v for v in stock.get("color_variants") or [] if (v.get("color") or "").casefold() == color),
            None,
        )
        if variant is None:
            raise ValidationError(f"Color {selection.get('color')} not found on stock {stock_id}")

        copies = parse_int(selection.get("copies", 1), "copies")
        if copies < 1:
            raise ValidationError("copies must be >= 1")

        number = variant.get("barcode") or generate_barcode_number(gs1_prefix, auto_sequence + index)
        if number not in svg_cache:
            svg_cache[number] = barcode_svg(number)

        for _ in range(copies):
            labels.append(
                Label(
                    group_name=stock["group_name"],
                    color=variant["color"],
                    size=(selection.get("size") or "").strip(),
                    shop=stock.get("shop"),
                    barcode=number,
                    barcode_svg=svg_cache[number],
                )
            )

    logger.info("Prepared %d labels from %d selections", len(labels), len(selections))
    return labels


def render_label_sheet(labels: list[Label], options: LabelOptions, printed_on: date | None = None) -> str:
    """Standalone HTML document (needs an app context for templates)."""
    return render_template(
        "labels.html",
        labels=labels,
        options=options,
        printed_on=(printed_on or date.today()).isoformat(),
    )
