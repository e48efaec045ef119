"""Error taxonomy and the per-run error context."""

from dataclasses import dataclass, field
from enum import IntEnum

from rich.console import Console


class ErrorKind(IntEnum):
    """Error kinds. The value doubles as the process exit code when fatal."""

    INVALID_OPTION = 1
    MISSING_ARGUMENT = 2
    UNKNOWN_MOD = 3
    MISSING_CREDENTIALS = 4
    REGISTRY_LOOKUP_FAILED = 5
    CORRUPT_ARCHIVE = 6
    MISSING_PERSISTED_STATE = 7
    MISSING_REQUIRED_PATH = 8
    LOCAL_MOD_EXISTS = 9
    DOWNLOAD_FAILED = 10
    REMOVE_FAILED = 11
    INVALID_PATH = 12

    @property
    def label(self) -> str:
        return "".join(part.capitalize() for part in self.name.split("_"))


ALWAYS_FATAL = frozenset(
    {ErrorKind.MISSING_PERSISTED_STATE, ErrorKind.MISSING_REQUIRED_PATH}
)


@dataclass
class ErrorRecord:
    kind: ErrorKind
    subject: str
    message: str
    suppressed: bool = False
    fatal: bool = False

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.label,
            "code": int(self.kind),
            "subject": self.subject,
            "message": self.message,
            "suppressed": self.suppressed,
            "fatal": self.fatal,
        }


class FatalRunError(Exception):
    """Raised when a reported error terminates the run."""

    def __init__(self, record: ErrorRecord):
        self.record = record
        super().__init__(f"{record.kind.label}: {record.message}")

    @property
    def exit_code(self) -> int:
        return int(self.record.kind)


@dataclass
class RunContext:
    """
    Error policy and bookkeeping for a single run.

    Args:
        ignored: kinds whose occurrences are suppressed from reporting.
                 The item is still skipped and a fatal kind still aborts.
        fatal: normally skippable kinds that should abort the run.
        strict: treat every kind as fatal.
        console: where reports are printed.
    """

    ignored: frozenset[ErrorKind] = frozenset()
    fatal: frozenset[ErrorKind] = frozenset()
    strict: bool = False
    console: Console = field(default_factory=Console)
    records: list[ErrorRecord] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return sum(1 for r in self.records if not r.suppressed)

    def is_fatal(self, kind: ErrorKind) -> bool:
        return self.strict or kind in ALWAYS_FATAL or kind in self.fatal

    def report(self, kind: ErrorKind, subject: str = "", message: str = "") -> ErrorRecord:
        """
        Record an error for the current item.

        Returns the record when the run may continue with the next item;
        raises FatalRunError otherwise.
        """
        fatal = self.is_fatal(kind)
        record = ErrorRecord(
            kind=kind,
            subject=subject,
            message=message or subject,
            suppressed=kind in self.ignored and not fatal,
            fatal=fatal,
        )
        self.records.append(record)

        if record.suppressed:
            return record

        self.console.print(f"[red]ERROR {int(kind)}:[/red] {kind.label}")
        if record.message:
            self.console.print(f"  {record.message}")

        if fatal:
            self.console.print(f"[red]Fatal error {int(kind)}. Exiting.[/red]")
            self.console.print(f"[dim]{self.error_count} errors recorded.[/dim]")
            raise FatalRunError(record)

        self.console.print("  [dim]Skipping.[/dim]")
        return record


def parse_error_kind(value: str) -> ErrorKind:
    """Resolve an error kind from its numeric code or name."""
    value = value.strip()
    if value.isdigit():
        return ErrorKind(int(value))
    key = value.upper().replace("-", "_")
    if key in ErrorKind.__members__:
        return ErrorKind[key]
    for kind in ErrorKind:
        if kind.label.lower() == value.lower():
            return kind
    raise ValueError(f"Unknown error kind: {value}")
