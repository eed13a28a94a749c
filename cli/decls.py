"""Normalized, read-only view of one declaration in a syntax tree.

The classifier only ever looks at these descriptors, never at libclang
cursors, so that the policy can be exercised without parsing anything.
"""

from dataclasses import dataclass
from enum import Enum

from dataclasses_json import dataclass_json

from idt_types import FilePathStr


class DeclKind(Enum):
    FUNCTION = "function"
    METHOD = "method"
    CLASS = "class"
    VARIABLE = "variable"
    TEMPLATE_SPECIALIZATION = "template_specialization"


class Access(Enum):
    PUBLIC = "public"
    PROTECTED = "protected"
    PRIVATE = "private"
    NOT_APPLICABLE = "none"


class ExportState(Enum):
    NONE = "none"
    EXPORTED = "exported"
    IMPORTED = "imported"
    HAS_VISIBILITY_ATTRIBUTE = "visibility"


class TemplateKind(Enum):
    NON_TEMPLATE = "non_template"
    INSTANTIATION_DECLARATION = "instantiation_declaration"
    INSTANTIATION_DEFINITION = "instantiation_definition"
    OTHER_TEMPLATE = "other_template"


@dataclass_json
@dataclass(frozen=True)
class SourceLoc:
    """Expansion location of a declaration. Line and column are 1-based,
    offset is a 0-based byte offset into `file`."""

    file: FilePathStr
    line: int
    column: int
    offset: int

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


@dataclass(frozen=True)
class DeclDescriptor:
    kind: DeclKind
    # Unqualified, as written; ignore lists match against this.
    name: str
    location: SourceLoc
    # Scope-qualified and with template arguments, for messages.
    qualified_name: str = ""
    is_in_system_header: bool = False
    # True only if the declaration was reached via an #include.
    is_in_header: bool = False

    # Functions and methods
    has_body: bool = False
    is_dependent_context: bool = False
    is_friend: bool = False
    is_deleted: bool = False
    is_defaulted: bool = False
    is_pure: bool = False
    access: Access = Access.NOT_APPLICABLE

    export_state: ExportState = ExportState.NONE
    template_kind: TemplateKind = TemplateKind.NON_TEMPLATE

    # Records and record specializations
    is_union: bool = False
    is_nested_in_record: bool = False
    is_complete_definition: bool = False
    record_keyword: str | None = None  # "class" or "struct"
    record_keyword_offset: int | None = None
    extern_keyword_offset: int | None = None

    # Variables
    has_external_storage: bool = False

    # Byte offsets into location.file. `inner_offset` skips any leading
    # template header, `begin_offset` does not.
    begin_offset: int = 0
    inner_offset: int = 0

    @property
    def file(self) -> FilePathStr:
        return self.location.file

    @property
    def display_name(self) -> str:
        return self.qualified_name or self.name

    @property
    def is_marked(self) -> bool:
        """Whether the declaration already carries an export, import or
        visibility annotation."""
        return self.export_state != ExportState.NONE

    @property
    def is_explicit_instantiation(self) -> bool:
        return self.template_kind in (
            TemplateKind.INSTANTIATION_DECLARATION,
            TemplateKind.INSTANTIATION_DEFINITION,
        )
