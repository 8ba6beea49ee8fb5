"""
Shared schema types for ledger documents.
"""
from typing import Annotated, Type, TypeVar, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, PlainSerializer, ValidationError

from securedrive.core.exceptions import InvalidArgument


def _parse_big_int(value: Union[int, str]) -> int:
    """Accept ints and decimal strings; reject everything else."""
    if isinstance(value, bool):
        raise ValueError("expected a decimal integer, got a boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        digits = text[1:] if text[:1] in "+-" else text
        if digits.isdigit():
            return int(text)
    raise ValueError(f"expected a decimal integer string, got {value!r}")


# Ciphertexts and moduli are stored as decimal strings to avoid precision
# loss in JSON consumers.
BigInt = Annotated[
    int,
    BeforeValidator(_parse_big_int),
    PlainSerializer(str, return_type=str, when_used="json"),
]


RecordT = TypeVar("RecordT", bound="LedgerRecord")


class LedgerRecord(BaseModel):
    """A document stored in the world state as flat JSON."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_bytes(self) -> bytes:
        return self.model_dump_json(by_alias=True).encode()

    @classmethod
    def from_bytes(cls: Type[RecordT], raw: bytes) -> RecordT:
        try:
            return cls.model_validate_json(raw)
        except ValidationError as e:
            raise InvalidArgument(f"Malformed {cls.__name__} document: {e}") from e
