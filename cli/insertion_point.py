from decls import DeclDescriptor, DeclKind, TemplateKind
from patch_engine import Edit


def record_insertion_offset(keyword: str | None, keyword_offset: int | None) -> int | None:
    """Offset just past `class ` or `struct `, so the annotation lands
    between the keyword and the record name."""
    if keyword not in ("class", "struct") or keyword_offset is None:
        return None
    return keyword_offset + len(keyword) + 1


def insertion_offset(decl: DeclDescriptor) -> int | None:
    match decl.kind:
        case DeclKind.FUNCTION | DeclKind.METHOD:
            # For templates the annotation goes after the template header,
            # ahead of the declaration specifiers shared by all instantiations.
            if decl.template_kind == TemplateKind.NON_TEMPLATE:
                return decl.begin_offset
            return decl.inner_offset
        case DeclKind.CLASS:
            return record_insertion_offset(decl.record_keyword, decl.record_keyword_offset)
        case DeclKind.VARIABLE:
            return decl.begin_offset
        case DeclKind.TEMPLATE_SPECIALIZATION:
            if decl.template_kind == TemplateKind.INSTANTIATION_DECLARATION:
                return decl.extern_keyword_offset
            return record_insertion_offset(decl.record_keyword, decl.record_keyword_offset)
    return None


def resolve(decl: DeclDescriptor, text: str) -> Edit | None:
    """The edit which annotates `decl` with `text`, or None if no valid
    insertion point is known for it."""
    offset = insertion_offset(decl)
    if offset is None or offset < 0:
        return None
    return Edit(file=decl.file, offset=offset, text=text)
