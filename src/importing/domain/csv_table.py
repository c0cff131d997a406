"""CSV tokenizing and Markdown table rendering for spreadsheet ingest."""


def parse_csv(text: str) -> list[list[str]]:
    """Parse CSV text into rows of fields.

    Handles quoted fields, commas and line breaks inside quotes, ``""`` escapes,
    and CR, LF or CRLF row endings. An unterminated quote keeps the rest of the
    input in the current field instead of failing.
    """
    rows: list[list[str]] = []
    row: list[str] = []
    field: list[str] = []
    in_quotes = False
    i = 0
    length = len(text)

    while i < length:
        ch = text[i]
        if in_quotes:
            if ch == '"':
                if i + 1 < length and text[i + 1] == '"':
                    field.append('"')
                    i += 2
                    continue
                in_quotes = False
            else:
                field.append(ch)
            i += 1
            continue

        if ch == '"':
            in_quotes = True
        elif ch == ",":
            row.append("".join(field))
            field = []
        elif ch == "\r" or ch == "\n":
            row.append("".join(field))
            field = []
            rows.append(row)
            row = []
            if ch == "\r" and i + 1 < length and text[i + 1] == "\n":
                i += 1
        else:
            field.append(ch)
        i += 1

    if field or row:
        row.append("".join(field))
        rows.append(row)

    return rows


def _escape_cell(cell: str) -> str:
    return cell.replace("|", "\\|").strip()


def csv_to_markdown_table(rows: list[list[str]]) -> str:
    """Render parsed rows as a Markdown pipe table with row 0 as the header."""
    if not rows:
        return ""

    header = rows[0]
    lines = [
        "| " + " | ".join(_escape_cell(cell) for cell in header) + " |",
        "| " + " | ".join("---" for _ in header) + " |",
    ]
    for data_row in rows[1:]:
        padded = list(data_row)
        if len(padded) < len(header):
            padded.extend([""] * (len(header) - len(padded)))
        lines.append("| " + " | ".join(_escape_cell(cell) for cell in padded) + " |")

    return "\n".join(lines)
