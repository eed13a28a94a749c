from dataclasses import dataclass
from enum import Enum

from dataclasses_json import dataclass_json

from classifier import Outcome, Verdict
from decls import DeclDescriptor, SourceLoc
from patch_engine import Edit


class Severity(Enum):
    REMARK = "remark"


class DiagnosticKind(Enum):
    UNEXPORTED_PUBLIC_INTERFACE = "unexported public interface"
    EXPORTED_PRIVATE_INTERFACE = "exported private interface"


@dataclass_json
@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    kind: DiagnosticKind
    subject: str
    location: SourceLoc
    message: str
    edit: Edit | None = None

    def render(self) -> str:
        """Render in the `file:line:col: severity: message` form that
        line-oriented checkers such as FileCheck expect."""
        return f"{self.location}: {self.severity.value}: {self.message}"


def diagnose(decl: DeclDescriptor, outcome: Outcome) -> Diagnostic | None:
    match outcome.verdict:
        case Verdict.FLAG:
            kind = DiagnosticKind.UNEXPORTED_PUBLIC_INTERFACE
        case Verdict.WARN:
            kind = DiagnosticKind.EXPORTED_PRIVATE_INTERFACE
        case _:
            return None
    return Diagnostic(
        severity=Severity.REMARK,
        kind=kind,
        subject=decl.display_name,
        location=decl.location,
        message=f"{kind.value} '{decl.display_name}'",
        edit=outcome.edit,
    )
