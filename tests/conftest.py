"""Shared fixtures for the elfdump test suite."""

from __future__ import annotations

import pytest

from elf_builder import BIG, ELFCLASS32, ELFCLASS64, LITTLE, full_builder, minimal_builder

from elfdump.core.engine import DumpEngine
from shared.config import ElfdumpConfig
from shared.logger import DumpLogger


LAYOUTS = [
    pytest.param((ELFCLASS32, LITTLE), id="elf32-le"),
    pytest.param((ELFCLASS32, BIG), id="elf32-be"),
    pytest.param((ELFCLASS64, LITTLE), id="elf64-le"),
    pytest.param((ELFCLASS64, BIG), id="elf64-be"),
]


@pytest.fixture
def minimal_image() -> bytes:
    """64-bit LE, sections ``.text`` and ``.shstrtab``, one PT_LOAD."""
    return minimal_builder().build()


@pytest.fixture(params=LAYOUTS)
def layout(request) -> tuple[int, int]:
    """Every (class, byte order) combination."""
    return request.param


@pytest.fixture
def full_image(layout) -> bytes:
    return full_builder(*layout).build()


@pytest.fixture
def quiet_logger() -> DumpLogger:
    return DumpLogger("test", log_level="DEBUG", console_output=False)


@pytest.fixture
def engine(quiet_logger) -> DumpEngine:
    return DumpEngine(config=ElfdumpConfig(), logger=quiet_logger)
