"""Command grammar: scanner and normalizer."""

from actionforce.core.grammar.normalizer import normalize, normalize_match, parse_argument
from actionforce.core.grammar.scanner import scan

__all__ = ["normalize", "normalize_match", "parse_argument", "scan"]
