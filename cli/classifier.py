"""Decides, per declaration, whether it needs an export annotation.

Each declaration kind has an ordered table of rules; the first rule that
matches decides the outcome. A declaration that makes it through its whole
table is a public interface missing its annotation and is flagged, with the
edit that would fix it.

Rules only read descriptor fields that are meaningful for the kind whose
table they appear in.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from decls import Access, DeclDescriptor, DeclKind, ExportState, TemplateKind
from idt_config import AnnotationGranularity, IdtConfig
import insertion_point
from patch_engine import Edit


class Verdict(Enum):
    SKIP = "skip"
    FLAG = "flag"
    WARN = "warn"


@dataclass(frozen=True)
class Outcome:
    verdict: Verdict
    # Name of the rule that decided the outcome.
    reason: str
    edit: Edit | None = None


@dataclass(frozen=True)
class Rule:
    name: str
    matches: Callable[[DeclDescriptor, IdtConfig], bool]
    verdict: Verdict = Verdict.SKIP


def _rule(name: str, verdict: Verdict = Verdict.SKIP):
    def wrap(fn: Callable[[DeclDescriptor, IdtConfig], bool]) -> Rule:
        return Rule(name, fn, verdict)

    return wrap


@_rule("system header")
def in_system_header(d: DeclDescriptor, config: IdtConfig) -> bool:
    return d.is_in_system_header


@_rule("internal path")
def in_internal_path(d: DeclDescriptor, config: IdtConfig) -> bool:
    return config.is_internal_path(d.file)


@_rule("dependent context")
def is_dependent(d: DeclDescriptor, config: IdtConfig) -> bool:
    return d.is_dependent_context


# A definition can always be materialized by the user of the header.
@_rule("has body")
def has_body(d: DeclDescriptor, config: IdtConfig) -> bool:
    return d.has_body


@_rule("friend declaration")
def is_friend(d: DeclDescriptor, config: IdtConfig) -> bool:
    return d.is_friend


@_rule("deleted or defaulted")
def is_deleted_or_defaulted(d: DeclDescriptor, config: IdtConfig) -> bool:
    return d.is_deleted or d.is_defaulted


@_rule("exported private interface", Verdict.WARN)
def is_exported_private(d: DeclDescriptor, config: IdtConfig) -> bool:
    return d.access == Access.PRIVATE and d.export_state == ExportState.EXPORTED


@_rule("private member")
def is_private(d: DeclDescriptor, config: IdtConfig) -> bool:
    return d.access == Access.PRIVATE


@_rule("pure virtual")
def is_pure(d: DeclDescriptor, config: IdtConfig) -> bool:
    return d.is_pure


@_rule("covered by record annotation")
def is_covered_by_record(d: DeclDescriptor, config: IdtConfig) -> bool:
    return config.granularity == AnnotationGranularity.RECORD


@_rule("already annotated")
def is_marked(d: DeclDescriptor, config: IdtConfig) -> bool:
    return d.is_marked


@_rule("ignored name")
def is_ignored(d: DeclDescriptor, config: IdtConfig) -> bool:
    return d.name in config.ignored


@_rule("incomplete definition")
def is_incomplete(d: DeclDescriptor, config: IdtConfig) -> bool:
    return not d.is_complete_definition


# `extern template class X<int>;` never has a definition of its own but is
# still the thing to annotate.
@_rule("incomplete specialization")
def is_incomplete_specialization(d: DeclDescriptor, config: IdtConfig) -> bool:
    return (
        not d.is_complete_definition
        and d.template_kind != TemplateKind.INSTANTIATION_DECLARATION
    )


@_rule("nested record")
def is_nested(d: DeclDescriptor, config: IdtConfig) -> bool:
    return d.is_nested_in_record


@_rule("union")
def is_union(d: DeclDescriptor, config: IdtConfig) -> bool:
    return d.is_union


@_rule("not in header")
def is_not_in_header(d: DeclDescriptor, config: IdtConfig) -> bool:
    return not d.is_in_header


@_rule("explicit instantiation")
def is_explicit_instantiation(d: DeclDescriptor, config: IdtConfig) -> bool:
    return d.is_explicit_instantiation


@_rule("explicit instantiation definition")
def is_instantiation_definition(d: DeclDescriptor, config: IdtConfig) -> bool:
    return d.template_kind == TemplateKind.INSTANTIATION_DEFINITION


@_rule("records not annotated")
def records_not_annotated(d: DeclDescriptor, config: IdtConfig) -> bool:
    return config.granularity == AnnotationGranularity.MEMBERS


@_rule("not extern")
def lacks_external_storage(d: DeclDescriptor, config: IdtConfig) -> bool:
    return not d.has_external_storage


COMMON_RULES: list[Rule] = [in_system_header, in_internal_path]

RULES_BY_KIND: dict[DeclKind, list[Rule]] = {
    DeclKind.FUNCTION: [
        *COMMON_RULES,
        is_dependent,
        has_body,
        is_friend,
        is_deleted_or_defaulted,
        is_marked,
        is_ignored,
    ],
    DeclKind.METHOD: [
        *COMMON_RULES,
        is_dependent,
        has_body,
        is_friend,
        is_deleted_or_defaulted,
        is_exported_private,
        is_private,
        is_pure,
        is_covered_by_record,
        is_marked,
        is_ignored,
    ],
    DeclKind.CLASS: [
        *COMMON_RULES,
        is_incomplete,
        is_nested,
        is_marked,
        is_union,
        is_not_in_header,
        is_explicit_instantiation,
        records_not_annotated,
    ],
    DeclKind.VARIABLE: [
        *COMMON_RULES,
        is_marked,
        lacks_external_storage,
    ],
    DeclKind.TEMPLATE_SPECIALIZATION: [
        *COMMON_RULES,
        is_incomplete_specialization,
        is_nested,
        is_marked,
        is_union,
        is_not_in_header,
        is_instantiation_definition,
        records_not_annotated,
    ],
}


def classify(decl: DeclDescriptor, config: IdtConfig) -> Outcome:
    for rule in RULES_BY_KIND.get(decl.kind, []):
        if rule.matches(decl, config):
            return Outcome(rule.verdict, rule.name)

    edit = insertion_point.resolve(decl, config.insertion_text)
    if edit is None:
        return Outcome(Verdict.SKIP, "no insertion point")
    return Outcome(Verdict.FLAG, "unexported public interface", edit)
