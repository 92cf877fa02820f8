"""
Invocation context — everything one ``ntm upgrade`` run needs to know.

Built once by the CLI entry point from its flags and config, then passed
explicitly to the upgrade core. Tests build their own with a recording
sink and a scripted ``confirm``.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Literal

if TYPE_CHECKING:
    from ntm.core.services.upgrade.progress import OutputSink

OutputFormat = Literal["text", "json"]
Confirm = Callable[[str, bool], bool]


def _stdout_sink() -> OutputSink:
    from ntm.core.services.upgrade.progress import StreamSink

    return StreamSink()


def _never_confirm(prompt: str, default: bool) -> bool:
    return default


@dataclass
class InvocationContext:
    """Flags and I/O seams for one upgrade invocation.

    ``confirm(prompt, default)`` asks the operator a yes/no question. It
    may raise ``EOFError`` when input cannot be read; callers decide what
    that means for their prompt.
    """

    sink: OutputSink = field(default_factory=_stdout_sink)
    confirm: Confirm = _never_confirm
    output_format: OutputFormat = "text"
    strict: bool = False
    verbose: bool = False
    assume_yes: bool = False
    force: bool = False
    check_only: bool = False
    require_checksums: bool = False
    cancel: threading.Event = field(default_factory=threading.Event)

    @property
    def machine_output(self) -> bool:
        return self.output_format == "json"
