"""Opisy pól binarnych i czytnik związany z jawną kolejnością bajtów."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Union

FieldValue = Union[int, bytes]


class ByteOrder(str, Enum):
    """Kolejność bajtów pól wielobajtowych."""

    LITTLE = "little"
    BIG = "big"
    # PDP-11: 16-bitowe słowa little-endian, słowo starsze jako pierwsze
    PDP = "pdp"


class FieldKind(str, Enum):
    UINT = "uint"
    INT = "int"
    BYTES = "bytes"


@dataclass(frozen=True, slots=True)
class Field:
    """Pojedyncze pole układu: nazwa, przesunięcie, szerokość i typ.

    ``scaled`` oznacza liczniki sektorów, które na nośnikach optycznych
    dzieli się przez 4 przed jakimkolwiek porównaniem.
    """

    name: str
    offset: int
    size: int
    kind: FieldKind = FieldKind.UINT
    scaled: bool = False

    @property
    def end(self) -> int:
        return self.offset + self.size


def u8(name: str, offset: int) -> Field:
    return Field(name, offset, 1)


def u16(name: str, offset: int, *, scaled: bool = False) -> Field:
    return Field(name, offset, 2, scaled=scaled)


def u32(name: str, offset: int, *, scaled: bool = False) -> Field:
    return Field(name, offset, 4, scaled=scaled)


def u64(name: str, offset: int, *, scaled: bool = False) -> Field:
    return Field(name, offset, 8, scaled=scaled)


def i32(name: str, offset: int) -> Field:
    return Field(name, offset, 4, FieldKind.INT)


def raw(name: str, offset: int, size: int) -> Field:
    return Field(name, offset, size, FieldKind.BYTES)


@dataclass(frozen=True, slots=True)
class FieldReader:
    """Czytnik pól związany z buforem, kolejnością bajtów i przesunięciem bazowym.

    Kolejność bajtów jest parametrem instancji, więc dwa równoległe dekodowania
    o różnej kolejności nigdy nie współdzielą stanu.
    """

    buffer: bytes
    byte_order: ByteOrder = ByteOrder.LITTLE
    base: int = 0

    def uint(self, offset: int, size: int) -> int:
        chunk = self._slice(offset, size)
        if self.byte_order is ByteOrder.PDP and size == 4:
            high = int.from_bytes(chunk[0:2], "little")
            low = int.from_bytes(chunk[2:4], "little")
            return (high << 16) | low
        order = "big" if self.byte_order is ByteOrder.BIG else "little"
        return int.from_bytes(chunk, order)

    def sint(self, offset: int, size: int) -> int:
        value = self.uint(offset, size)
        sign_bit = 1 << (size * 8 - 1)
        return value - (sign_bit << 1) if value & sign_bit else value

    def raw_bytes(self, offset: int, size: int) -> bytes:
        return self._slice(offset, size)

    def read(self, field: Field) -> FieldValue:
        if field.kind is FieldKind.BYTES:
            return self.raw_bytes(field.offset, field.size)
        if field.kind is FieldKind.INT:
            return self.sint(field.offset, field.size)
        return self.uint(field.offset, field.size)

    def read_all(self, fields: Iterable[Field], *, optical: bool = False) -> Dict[str, FieldValue]:
        values: Dict[str, FieldValue] = {}
        for field in fields:
            value = self.read(field)
            if optical and field.scaled and isinstance(value, int):
                value //= 4
            values[field.name] = value
        return values

    def _slice(self, offset: int, size: int) -> bytes:
        start = self.base + offset
        end = start + size
        if start < 0 or end > len(self.buffer):
            raise ValueError(f"Pole [{start}:{end}] wykracza poza bufor o długości {len(self.buffer)}")
        return self.buffer[start:end]


__all__ = [
    "ByteOrder",
    "Field",
    "FieldKind",
    "FieldReader",
    "FieldValue",
    "i32",
    "raw",
    "u8",
    "u16",
    "u32",
    "u64",
]
