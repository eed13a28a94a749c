"""Builds declaration descriptors from a libclang translation unit."""

import os
from typing import Generator

from clang.cindex import (  # type: ignore
    AccessSpecifier,
    Cursor,
    CursorKind,
    StorageClass,
    TemplateArgumentKind,
    TranslationUnit,
)

from cindex_helpers import (
    AncestorChain,
    cursor_tokens,
    ends_with_assignment_of,
    find_first_token,
    skip_template_header,
    tokens_through_terminator,
    yield_matching_cursors,
)
from decls import Access, DeclDescriptor, DeclKind, ExportState, SourceLoc, TemplateKind

FUNCTION_KINDS = [CursorKind.FUNCTION_DECL, CursorKind.FUNCTION_TEMPLATE]
METHOD_KINDS = [
    CursorKind.CXX_METHOD,
    CursorKind.CONSTRUCTOR,
    CursorKind.DESTRUCTOR,
    CursorKind.CONVERSION_FUNCTION,
]
RECORD_KINDS = [CursorKind.CLASS_DECL, CursorKind.STRUCT_DECL, CursorKind.UNION_DECL]
DEPENDENT_KINDS = [
    CursorKind.FUNCTION_TEMPLATE,
    CursorKind.CLASS_TEMPLATE,
    CursorKind.CLASS_TEMPLATE_PARTIAL_SPECIALIZATION,
]
NESTING_RECORD_KINDS = RECORD_KINDS + [
    CursorKind.CLASS_TEMPLATE,
    CursorKind.CLASS_TEMPLATE_PARTIAL_SPECIALIZATION,
]
DECL_KINDS = FUNCTION_KINDS + METHOD_KINDS + RECORD_KINDS + [CursorKind.VAR_DECL]
# Anything declared beneath one of these is local to a function body.
BODY_KINDS = FUNCTION_KINDS + METHOD_KINDS + [CursorKind.COMPOUND_STMT, CursorKind.LAMBDA_EXPR]

ACCESS_BY_SPECIFIER = {
    AccessSpecifier.PUBLIC: Access.PUBLIC,
    AccessSpecifier.PROTECTED: Access.PROTECTED,
    AccessSpecifier.PRIVATE: Access.PRIVATE,
}

EXPORT_STATE_BY_ATTR = {
    CursorKind.DLLEXPORT_ATTR: ExportState.EXPORTED,
    CursorKind.DLLIMPORT_ATTR: ExportState.IMPORTED,
    CursorKind.VISIBILITY_ATTR: ExportState.HAS_VISIBILITY_ATTRIBUTE,
}


def normalized(path: str) -> str:
    # One key per file, however an #include spelled its path.
    return os.path.realpath(path)


def source_loc(cursor: Cursor) -> SourceLoc | None:
    # Diagnostics point at the start of the declaration, not at its name.
    loc = cursor.extent.start
    if loc.file is None:
        return None
    return SourceLoc(
        file=normalized(loc.file.name), line=loc.line, column=loc.column, offset=loc.offset
    )


def export_state(cursor: Cursor) -> ExportState:
    for child in cursor.get_children():
        state = EXPORT_STATE_BY_ATTR.get(child.kind)
        if state is not None:
            return state
    return ExportState.NONE


def template_kind(cursor: Cursor, tokens) -> TemplateKind:
    spellings = [t.spelling for t in tokens[:3]]
    if spellings[:2] == ["extern", "template"]:
        return TemplateKind.INSTANTIATION_DECLARATION
    if spellings[:1] == ["template"] and spellings[1:2] != ["<"]:
        return TemplateKind.INSTANTIATION_DEFINITION
    if spellings[:2] == ["template", "<"] or cursor.kind == CursorKind.FUNCTION_TEMPLATE:
        return TemplateKind.OTHER_TEMPLATE
    if cursor.get_num_template_arguments() >= 0:
        return TemplateKind.OTHER_TEMPLATE
    return TemplateKind.NON_TEMPLATE


def is_dependent_context(cursor: Cursor) -> bool:
    current = cursor
    while current is not None and current.kind != CursorKind.TRANSLATION_UNIT:
        if current.kind in DEPENDENT_KINDS:
            return True
        current = current.semantic_parent
    return False


def is_function_local(ancestors: AncestorChain | None) -> bool:
    while ancestors is not None:
        cursor, ancestors = ancestors
        if cursor.kind in BODY_KINDS:
            return True
    return False


def template_arguments(cursor: Cursor) -> list[str] | None:
    """Spelled template arguments of a specialization, or None when the
    cursor is not one or an argument cannot be spelled."""
    count = cursor.get_num_template_arguments()
    if count < 0:
        return None
    args = []
    for i in range(count):
        match cursor.get_template_argument_kind(i):
            case TemplateArgumentKind.TYPE:
                args.append(cursor.get_template_argument_type(i).spelling)
            case TemplateArgumentKind.INTEGRAL:
                args.append(str(cursor.get_template_argument_value(i)))
            case _:
                return None
    return args


def qualified_name(cursor: Cursor) -> str:
    """`ns::widget::draw` or `convert<char>`, as clang names a declaration
    in its own diagnostics."""
    parts = []
    current = cursor
    while current is not None and current.kind != CursorKind.TRANSLATION_UNIT:
        if current.spelling and current.kind != CursorKind.LINKAGE_SPEC:
            args = template_arguments(current)
            if args:
                parts.append(f"{current.spelling}<{', '.join(args)}>")
            else:
                parts.append(current.spelling)
        current = current.semantic_parent
    return "::".join(reversed(parts))


def is_braceless_linkage_spec(cursor: Cursor) -> bool:
    """`extern "C" int x;` declares `x` as if it were written `extern`. The
    declaration itself starts after the `extern "C"` opener, so inserting at
    its start keeps the annotation behind the linkage specification."""
    if cursor.kind != CursorKind.LINKAGE_SPEC:
        return False
    return all(t.spelling != "{" for t in cursor.get_tokens())


def has_body(cursor: Cursor) -> bool:
    # Mirrors FunctionDecl::hasBody: true if any redeclaration in this
    # translation unit is a definition.
    return cursor.is_definition() or cursor.get_definition() is not None


class DeclExtractor:
    """Turns the cursors of one translation unit into descriptors."""

    def __init__(self, tu: TranslationUnit):
        self.tu = tu
        self.main_file = normalized(tu.spelling)

    def descriptors(self) -> Generator[DeclDescriptor, None, None]:
        for cursor, ancestors in yield_matching_cursors(self.tu.cursor, DECL_KINDS):
            decl = self.describe(cursor, ancestors)
            if decl is not None:
                yield decl

    def describe(self, cursor: Cursor, ancestors: AncestorChain) -> DeclDescriptor | None:
        location = source_loc(cursor)
        if location is None or is_function_local(ancestors):
            return None

        tokens = cursor_tokens(cursor)
        begin_offset = cursor.extent.start.offset
        inner = skip_template_header(tokens)
        inner_offset = tokens[inner].extent.start.offset if inner < len(tokens) else begin_offset
        common = dict(
            name=cursor.spelling,
            qualified_name=qualified_name(cursor),
            location=location,
            is_in_system_header=cursor.location.is_in_system_header,
            is_in_header=location.file != self.main_file,
            export_state=export_state(cursor),
            template_kind=template_kind(cursor, tokens),
            begin_offset=begin_offset,
            inner_offset=inner_offset,
        )

        if cursor.kind in FUNCTION_KINDS or cursor.kind in METHOD_KINDS:
            return self.describe_function(cursor, ancestors, common)
        if cursor.kind in RECORD_KINDS:
            return self.describe_record(cursor, tokens, inner, common)
        if cursor.kind == CursorKind.VAR_DECL:
            return self.describe_variable(cursor, ancestors, common)
        return None

    def describe_function(
        self, cursor: Cursor, ancestors: AncestorChain, common: dict
    ) -> DeclDescriptor:
        is_method = cursor.kind in METHOD_KINDS
        lexical_parent = ancestors[0]
        tokens = tokens_through_terminator(self.tu, cursor)
        return DeclDescriptor(
            kind=DeclKind.METHOD if is_method else DeclKind.FUNCTION,
            has_body=has_body(cursor),
            is_dependent_context=is_dependent_context(cursor),
            is_friend=lexical_parent.kind == CursorKind.FRIEND_DECL,
            is_deleted=ends_with_assignment_of(tokens, "delete"),
            is_defaulted=ends_with_assignment_of(tokens, "default")
            or (is_method and cursor.is_default_method()),
            is_pure=is_method and cursor.is_pure_virtual_method(),
            access=ACCESS_BY_SPECIFIER.get(cursor.access_specifier, Access.NOT_APPLICABLE)
            if is_method
            else Access.NOT_APPLICABLE,
            **common,
        )

    def describe_record(
        self, cursor: Cursor, tokens, inner: int, common: dict
    ) -> DeclDescriptor | None:
        if is_dependent_context(cursor):
            return None
        keyword = find_first_token(tokens, ("class", "struct", "union"), start=inner)
        extern = tokens[0] if tokens and tokens[0].spelling == "extern" else None
        is_specialization = common["template_kind"] != TemplateKind.NON_TEMPLATE
        return DeclDescriptor(
            kind=DeclKind.TEMPLATE_SPECIALIZATION if is_specialization else DeclKind.CLASS,
            is_union=cursor.kind == CursorKind.UNION_DECL,
            is_nested_in_record=cursor.semantic_parent is not None
            and cursor.semantic_parent.kind in NESTING_RECORD_KINDS,
            is_complete_definition=cursor.is_definition(),
            record_keyword=keyword.spelling if keyword is not None else None,
            record_keyword_offset=keyword.extent.start.offset if keyword is not None else None,
            extern_keyword_offset=extern.extent.start.offset if extern is not None else None,
            **common,
        )

    def describe_variable(
        self, cursor: Cursor, ancestors: AncestorChain, common: dict
    ) -> DeclDescriptor | None:
        return DeclDescriptor(
            kind=DeclKind.VARIABLE,
            has_external_storage=cursor.storage_class == StorageClass.EXTERN
            or (is_braceless_linkage_spec(ancestors[0]) and not cursor.is_definition()),
            **common,
        )


def descriptors_for(tu: TranslationUnit) -> Generator[DeclDescriptor, None, None]:
    return DeclExtractor(tu).descriptors()
