import pytest

from decls import DeclKind, TemplateKind
import insertion_point
from patch_engine import Edit

from conftest import HEADER, make_decl


@pytest.mark.parametrize("keyword, delta", [("class", 6), ("struct", 7)])
def test_record_insertion_follows_keyword(keyword, delta):
    source = f"{keyword} widget {{ int x; }};"
    d = make_decl(
        DeclKind.CLASS,
        "widget",
        is_complete_definition=True,
        record_keyword=keyword,
        record_keyword_offset=0,
    )
    offset = insertion_point.insertion_offset(d)
    assert offset == delta
    assert source[:offset] + "EXPORT " + source[offset:] == f"{keyword} EXPORT widget {{ int x; }};"


def test_record_insertion_is_relative_to_keyword_not_declaration():
    d = make_decl(
        DeclKind.CLASS, "widget", begin_offset=3, record_keyword="class", record_keyword_offset=50
    )
    assert insertion_point.insertion_offset(d) == 56


def test_unions_have_no_record_insertion_point():
    assert insertion_point.record_insertion_offset("union", 0) is None
    assert insertion_point.record_insertion_offset("struct", None) is None


def test_function_template_inserts_after_template_header():
    source = "template <> void g<char>(char &);"
    d = make_decl(
        DeclKind.FUNCTION,
        "g",
        template_kind=TemplateKind.OTHER_TEMPLATE,
        begin_offset=0,
        inner_offset=source.index("void"),
    )
    edit = insertion_point.resolve(d, "EXPORT ")
    assert edit is not None
    assert source[: edit.offset] + edit.text + source[edit.offset :] == (
        "template <> EXPORT void g<char>(char &);"
    )


def test_non_template_function_inserts_at_begin():
    d = make_decl(DeclKind.FUNCTION, "h", begin_offset=9, inner_offset=30)
    assert insertion_point.resolve(d, "EXPORT ") == Edit(HEADER, 9, "EXPORT ")


def test_instantiation_declaration_inserts_at_extern():
    d = make_decl(
        DeclKind.TEMPLATE_SPECIALIZATION,
        "traits",
        template_kind=TemplateKind.INSTANTIATION_DECLARATION,
        record_keyword="struct",
        record_keyword_offset=16,
        extern_keyword_offset=0,
    )
    assert insertion_point.insertion_offset(d) == 0


def test_variable_inserts_at_declaration_start():
    d = make_decl(DeclKind.VARIABLE, "counter", has_external_storage=True, begin_offset=21)
    assert insertion_point.resolve(d, "API ") == Edit(HEADER, 21, "API ")
