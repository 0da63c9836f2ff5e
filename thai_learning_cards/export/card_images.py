"""
SVG renderings of cards and the file naming shared by all export files.
"""

import re
from xml.sax.saxutils import escape

from ..models import Card


# Anything outside word characters and the Thai block becomes an underscore
_UNSAFE_CHARS = re.compile(r'[^\w\u0E00-\u0E7F]')

SVG_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<svg width="400" height="300" xmlns="http://www.w3.org/2000/svg">
  <defs>
    <style>
      .card-bg {{ fill: #ffffff; stroke: #e2e8f0; stroke-width: 2; }}
      .headword {{ font-family: Arial, sans-serif; font-size: 28px; font-weight: bold; fill: #1e293b; text-anchor: middle; }}
      .pronunciation {{ font-family: Arial, sans-serif; font-size: 16px; fill: #64748b; text-anchor: middle; }}
      .translation {{ font-family: Arial, sans-serif; font-size: 18px; fill: #374151; text-anchor: middle; }}
      .example-bg {{ fill: #f8fafc; stroke: #cbd5e1; stroke-width: 1; }}
      .example-label {{ font-family: Arial, sans-serif; font-size: 11px; fill: #64748b; font-weight: bold; }}
      .example-text {{ font-family: Arial, sans-serif; font-size: 12px; fill: #1e293b; }}
      .example-translation {{ font-family: Arial, sans-serif; font-size: 11px; fill: #64748b; }}
      .card-info {{ font-family: Arial, sans-serif; font-size: 10px; fill: #94a3b8; }}
    </style>
  </defs>
  <rect width="400" height="300" class="card-bg" rx="12"/>
  <text x="200" y="50" class="headword">{headword}</text>
  <text x="200" y="75" class="pronunciation">[{pronunciation}]</text>
  <text x="200" y="100" class="translation">{translation}</text>
  <rect x="15" y="120" width="370" height="130" class="example-bg" rx="8"/>
  <text x="25" y="140" class="example-label">EXAMPLE:</text>
  <text x="25" y="160" class="example-text">{example}</text>
  <text x="25" y="180" class="example-translation">{example_translation}</text>
  <text x="25" y="270" class="card-info">Card {number} | Level {level} | Thai Learning Cards</text>
</svg>
"""


def sanitize_name(text: str) -> str:
    return _UNSAFE_CHARS.sub('_', text)


def card_number(index: int) -> str:
    """Zero-padded, one-based sequence number for the card at ``index``."""
    return str(index + 1).zfill(3)


def card_basename(card: Card, index: int) -> str:
    """Base filename shared by a card's image and audio files."""
    return f"card_{card_number(index)}_{sanitize_name(card.headword)}"


def truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + '...'


def _xml(text: str) -> str:
    return escape(text, {'"': '&quot;', "'": '&#39;'})


def render_card_svg(card: Card, index: int) -> str:
    """Render the card at position ``index`` as an SVG document."""
    return SVG_TEMPLATE.format(
        headword=_xml(card.headword),
        pronunciation=_xml(card.pronunciation),
        translation=_xml(card.translation),
        example=_xml(truncate(card.example, 30)),
        example_translation=_xml(truncate(card.example_translation, 35)),
        number=card_number(index),
        level=card.level
    )


def card_image_filename(card: Card, index: int) -> str:
    return f"{card_basename(card, index)}.svg"
