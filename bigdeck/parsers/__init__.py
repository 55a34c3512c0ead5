from bigdeck.parsers.decklist import parse_decklist, parse_decklist_line

__all__ = [
    "parse_decklist",
    "parse_decklist_line",
]
