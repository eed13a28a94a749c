"""
Common definitions for tests

Definitions decorated with `pytest.fixture` are pytest test fixtures;
a test that names one as a parameter receives its return value.
"""

from typing import Callable

import pytest

from decls import DeclDescriptor, DeclKind, SourceLoc
from idt_config import AnnotationGranularity, IdtConfig
from ignore_registry import IgnoreRegistry

HEADER = "include/widgets/api.h"


def make_decl(kind: DeclKind, name: str = "h", file: str = HEADER, **fields) -> DeclDescriptor:
    """A descriptor with neutral defaults: public, unannotated, a plain
    declaration reached through an include."""
    offset = fields.pop("offset", 0)
    fields.setdefault("is_in_header", True)
    fields.setdefault("begin_offset", offset)
    fields.setdefault("inner_offset", fields["begin_offset"])
    return DeclDescriptor(
        kind=kind,
        name=name,
        location=SourceLoc(file=file, line=1, column=1, offset=offset),
        **fields,
    )


@pytest.fixture
def decl() -> Callable[..., DeclDescriptor]:
    return make_decl


@pytest.fixture
def config() -> IdtConfig:
    """Member granularity, export macro EXPORT, nothing ignored"""
    return IdtConfig(
        export_macro="EXPORT",
        granularity=AnnotationGranularity.MEMBERS,
        ignored=IgnoreRegistry.empty(),
    )


@pytest.fixture
def record_config(config) -> IdtConfig:
    """Like `config`, but annotating records rather than their members"""
    return IdtConfig(
        export_macro=config.export_macro,
        granularity=AnnotationGranularity.RECORD,
        ignored=config.ignored,
    )
