"""
STARK 트레이스 테이블 모음
===========================

Brainfuck VM 의 실행을 증명하는 다섯 테이블과 그 연결 관계.

  ┌──────────────────┐  명령어 순열 (a,b,c,α)  ┌──────────────────┐
  │ InstructionTable │ ◀─────────────────────▶ │  ProcessorTable  │
  └──────────────────┘                         └────────┬─────────┘
                                                        │ 메모리 순열 (d,e,f,β)
                                                        ▼
                                               ┌──────────────────┐
                                               │   MemoryTable    │
                                               └──────────────────┘

두 순열 인자는 같은 Initials 에서 출발하며,
양쪽 테이블의 종단값이 같아야 한다.

InputTable(γ), OutputTable(δ) 는 평가 인자로 공개 입출력에 묶인다.

사용 예시:
    >>> from zkp.stark.tables import TableKind, new_table
    >>> table = new_table(TableKind.MEMORY, length, 2, generator, order)
"""

from zkp.stark.tables.base import (
    MalformedTraceError,
    TableKind,
    TraceTable,
    row_constraint_violations,
    transition_constraint_violations,
)
from zkp.stark.tables.instruction import InstructionTable
from zkp.stark.tables.io import InputTable, IOTable, OutputTable, evaluation_terminal
from zkp.stark.tables.memory import MemoryTable
from zkp.stark.tables.processor import ProcessorTable


TABLE_CLASSES = {
    TableKind.PROCESSOR: ProcessorTable,
    TableKind.INSTRUCTION: InstructionTable,
    TableKind.MEMORY: MemoryTable,
    TableKind.INPUT: InputTable,
    TableKind.OUTPUT: OutputTable,
}


def new_table(kind, length, num_randomizers, generator, order):
    """테이블 종류에 맞는 빈 테이블을 생성한다.

    Raises:
        ValueError: TableKind 가 아닌 값이 주어졌을 때
    """
    try:
        cls = TABLE_CLASSES[TableKind(kind)]
    except ValueError:
        raise ValueError(f"알 수 없는 테이블 종류입니다: {kind!r}") from None
    return cls(length, num_randomizers, generator, order)


def derive_tables(trace, program, num_randomizers, generator, order):
    """트레이스와 프로그램으로부터 모든 테이블을 유도·패딩한다.

    Returns:
        dict: {TableKind: TraceTable}
    """
    return {
        kind: cls.from_trace(trace, program, num_randomizers, generator, order)
        for kind, cls in TABLE_CLASSES.items()
    }


__all__ = [
    "TABLE_CLASSES",
    "IOTable",
    "InputTable",
    "InstructionTable",
    "MalformedTraceError",
    "MemoryTable",
    "OutputTable",
    "ProcessorTable",
    "TableKind",
    "TraceTable",
    "derive_tables",
    "evaluation_terminal",
    "new_table",
    "row_constraint_violations",
    "transition_constraint_violations",
]
