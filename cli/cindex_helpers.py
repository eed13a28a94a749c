import os
from pathlib import Path
from typing import Generator, Sequence

from clang.cindex import (  # type: ignore
    Config,
    Cursor,
    CursorKind,
    Index,
    Token,
    TranslationUnit,
)

type AncestorChain = tuple[Cursor, AncestorChain | None]


def create_clang_index(libclang_path: Path | None = None) -> Index:
    """Create a clang Index, optionally pinned to a specific libclang."""
    if libclang_path is not None and not Config.loaded:
        Config.set_library_file(libclang_path.as_posix())
    return Index.create()


def parse_translation_unit(
    index: Index,
    path: str,
    args: Sequence[str],
    unsaved_files: Sequence[tuple[str, str]] | None = None,
) -> TranslationUnit:
    # Function bodies must be parsed: whether a declaration has a body is
    # part of the export policy.
    return index.parse(path=path, args=list(args), unsaved_files=unsaved_files)


def yield_matching_cursors(
    root_cursor: Cursor, cursor_kinds_of_interest: Sequence[CursorKind]
) -> Generator[tuple[Cursor, AncestorChain], None, None]:
    """Yield matching cursors in document order (pre-order), each paired with
    the chain of its lexical ancestors."""

    worklist: list[AncestorChain] = [(root_cursor, None)]
    while worklist:
        current, ancestors = worklist.pop()
        if current.kind in cursor_kinds_of_interest:
            assert ancestors is not None
            yield (current, ancestors)

        # Push in reverse so that the first child is visited first.
        for child in reversed(list(current.get_children())):
            worklist.append((child, (current, ancestors)))  # type: ignore


def cursor_tokens(cursor: Cursor) -> list[Token]:
    return list(cursor.get_tokens())


def tokens_through_terminator(
    tu: TranslationUnit, cursor: Cursor, window: int = 256
) -> list[Token]:
    """Tokens of a declaration, continued past the cursor's extent up to the
    `;` or `{` which ends it.

    The extent of a free function declaration stops at its closing paren,
    leaving out a trailing `= delete` or `= default`."""
    tokens = cursor_tokens(cursor)
    if tokens and tokens[-1].spelling in (";", "}"):
        return tokens
    end = cursor.extent.end
    if end.file is None:
        return tokens
    try:
        size = os.path.getsize(end.file.name)
    except OSError:
        return tokens
    stop = min(size, end.offset + window)
    if stop <= end.offset:
        return tokens

    for token in tu.get_tokens(extent=tu.get_extent(end.file.name, (end.offset, stop))):
        if token.extent.start.offset < end.offset:
            continue
        if token.spelling in (";", "{"):
            break
        tokens.append(token)
    return tokens


def skip_template_header(tokens: Sequence[Token]) -> int:
    """Index of the first token after any `template <...>` headers.

    Angle brackets are balanced so that default template arguments like
    `template <typename T = vector<int>>` are skipped as a unit."""
    i = 0
    while (
        i + 1 < len(tokens) and tokens[i].spelling == "template" and tokens[i + 1].spelling == "<"
    ):
        depth = 0
        i += 1
        while i < len(tokens):
            spelling = tokens[i].spelling
            if spelling == "<":
                depth += 1
            elif spelling == ">":
                depth -= 1
            elif spelling == ">>":
                depth -= 2
            i += 1
            if depth <= 0:
                break
    return i


def ends_with_assignment_of(tokens: Sequence[Token], keyword: str) -> bool:
    """Whether the declaration ends in `= delete` or `= default`."""
    spellings = [t.spelling for t in tokens]
    while spellings and spellings[-1] == ";":
        spellings.pop()
    return spellings[-2:] == ["=", keyword]


def find_first_token(
    tokens: Sequence[Token], spellings: Sequence[str], start: int = 0
) -> Token | None:
    for token in tokens[start:]:
        if token.spelling in spellings:
            return token
    return None
