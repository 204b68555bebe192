"""
CSV line tokenizer for recipe uploads.

Works line by line: the upload is split into trimmed, non-empty lines first,
so a quoted field cannot span lines.
"""

import re

_LINE_BREAK = re.compile(r"\r?\n")


def split_csv_lines(text: str) -> list[str]:
    """
    Split CSV text into trimmed, non-empty lines.

    "a,b\\r\\n\\n  c,d  \\n" -> ["a,b", "c,d"]
    """
    lines = (line.strip() for line in _LINE_BREAK.split(text))
    return [line for line in lines if line]


def tokenize_csv_line(line: str) -> list[str]:
    """
    Split one CSV line into ordered fields.

    Double quotes toggle quoting; a doubled quote inside a quoted field is a
    literal quote. An unterminated quote runs to end of line. The last field
    is always emitted, so "" -> [""] and "a," -> ["a", ""].

    Args:
        line: One line of CSV text (no line break)

    Returns:
        List of field strings, untrimmed
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    length = len(line)

    while i < length:
        ch = line[i]
        if ch == '"':
            if in_quotes and i + 1 < length and line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1

    fields.append("".join(current))
    return fields
