"""
Message - structured result records emitted by a DDL engine.

Messages are produced only by create/drop, in execution order, and are
consumed purely for reporting. They are never altered after creation.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class MessageKind(str, Enum):
    """Severity of an engine message."""
    INFO = "info"
    ERROR = "error"
    DIAGNOSTIC = "diagnostic"


@dataclass(frozen=True)
class Message:
    """
    A single engine result record.

    Attributes:
        kind: info, error or diagnostic
        text: Human readable status line
        sql: The statement the message refers to, if any
    """
    kind: MessageKind
    text: str
    sql: Optional[str] = None

    @classmethod
    def info(cls, text: str, sql: Optional[str] = None) -> "Message":
        return cls(MessageKind.INFO, text, sql)

    @classmethod
    def error(cls, text: str, sql: Optional[str] = None) -> "Message":
        return cls(MessageKind.ERROR, text, sql)

    @classmethod
    def diagnostic(cls, text: str, sql: Optional[str] = None) -> "Message":
        return cls(MessageKind.DIAGNOSTIC, text, sql)

    @property
    def is_error(self) -> bool:
        return self.kind == MessageKind.ERROR

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "text": self.text, "sql": self.sql}
