"""
트레이스 테이블 공통 인터페이스
================================

모든 구체 테이블은 같은 연산 집합을 제공한다:

  derive_matrix → pad → base_*_constraints → extend → *_constraints_ext

  ┌──────────────┐   derive    ┌──────────┐   pad   ┌──────────────┐
  │ VM 트레이스   │ ──────────▶ │ 기저 행렬 │ ──────▶ │ 2^k 행 행렬   │
  └──────────────┘             └──────────┘         └──────┬───────┘
                                                           │ extend(challenges, initials)
                                                           ▼
                                                    ┌──────────────┐
                                                    │ 확장 행렬     │ → More(종단값)
                                                    └──────────────┘

테이블 종류는 설계 시점에 고정된 닫힌 집합(TableKind)이다.
구현되지 않은 제약 계열은 빈 리스트가 아니라 NotImplementedError 로 즉시 실패한다
("아직 정의되지 않음"이지 "공허하게 참"이 아니다).
"""

import enum

from zkp.stark.field import XField
from zkp.stark.table import Table


class TableKind(enum.Enum):
    """구체 테이블 종류 (닫힌 집합)."""
    PROCESSOR = "processor"
    INSTRUCTION = "instruction"
    MEMORY = "memory"
    INPUT = "input"
    OUTPUT = "output"


class MalformedTraceError(ValueError):
    """실행 트레이스가 테이블 유도의 전제조건을 어겼을 때 발생한다.

    예: 마지막 행이 아닌 행의 current_instruction 이 0 (이미 패딩된 트레이스).

    속성:
        row_index: 문제가 된 행의 인덱스
        trace: 전달된 전체 트레이스 (진단용)
    """

    def __init__(self, message, row_index, trace):
        super().__init__(message)
        self.row_index = row_index
        self.trace = trace


class TraceTable:
    """구체 테이블의 공통 기반 클래스.

    기하와 행렬은 self.table (Table 컨테이너)에 보관한다.
    서브클래스는 클래스 상수 KIND, NAME, BASE_WIDTH, FULL_WIDTH 와
    new_more() 를 정의하고, 각 제약 계열을 재정의한다.
    """

    KIND = None
    NAME = None
    BASE_WIDTH = None
    FULL_WIDTH = None

    def __init__(self, length, num_randomizers, generator, order):
        self.table = Table(
            self.BASE_WIDTH,
            self.FULL_WIDTH,
            length,
            num_randomizers,
            generator,
            order,
            self.NAME,
            self.new_more(),
        )

    @classmethod
    def new_more(cls):
        raise NotImplementedError(f"{cls.NAME}: 보조 상태(More)가 정의되지 않았습니다")

    # ── 기하 접근자 ──────────────────────────────────────────────────

    @property
    def base_width(self):
        return self.table.base_width

    @property
    def full_width(self):
        return self.table.full_width

    @property
    def length(self):
        return self.table.length

    @property
    def height(self):
        return self.table.height

    @property
    def num_randomizers(self):
        return self.table.num_randomizers

    @property
    def generator(self):
        return self.table.generator

    @property
    def order(self):
        return self.table.order

    @property
    def omicron(self):
        return self.table.omicron

    @property
    def name(self):
        return self.table.name

    @property
    def matrix(self):
        return self.table.matrix

    @property
    def extended_matrix(self):
        return self.table.extended_matrix

    @property
    def more(self):
        return self.table.more

    # ── 생성 ─────────────────────────────────────────────────────────

    @classmethod
    def derive(cls, trace, program):
        """VM 결과로부터 이 테이블의 (패딩 전) 기저 행렬을 유도한다.

        테이블마다 필요한 입력이 다르므로, 기본 구현은 트레이스만 넘긴다.
        """
        return cls.derive_matrix(trace)

    @staticmethod
    def derive_matrix(trace):
        raise NotImplementedError("derive_matrix 가 정의되지 않았습니다")

    @classmethod
    def from_trace(cls, trace, program, num_randomizers, generator, order):
        """유도 → 생성 → 패딩을 한 번에 수행한다.

        Returns:
            TraceTable: 패딩된 기저 행렬을 가진 테이블
        """
        matrix = cls.derive(trace, program)
        table = cls(len(matrix), num_randomizers, generator, order)
        table.table.matrix = matrix
        table.pad()
        return table

    def pad(self):
        raise NotImplementedError(f"{self.name}: pad 가 정의되지 않았습니다")

    # ── 기저체 제약 ──────────────────────────────────────────────────

    def base_transition_constraints(self):
        raise NotImplementedError(f"{self.name}: 기저 전이 제약이 정의되지 않았습니다")

    def base_boundary_constraints(self):
        raise NotImplementedError(f"{self.name}: 기저 경계 제약이 정의되지 않았습니다")

    # ── 확장 ─────────────────────────────────────────────────────────

    def extend(self, challenges, initials):
        raise NotImplementedError(f"{self.name}: extend 가 정의되지 않았습니다")

    def _lift_codewords(self):
        self.table.extended_codewords = [
            [XField.lift(value) for value in codeword]
            for codeword in self.table.codewords
        ]

    # ── 확장체 제약 ──────────────────────────────────────────────────

    def transition_constraints_ext(self, challenges):
        raise NotImplementedError(f"{self.name}: 확장 전이 제약이 정의되지 않았습니다")

    def boundary_constraints_ext(self, challenges):
        raise NotImplementedError(f"{self.name}: 확장 경계 제약이 정의되지 않았습니다")

    def terminal_constraints_ext(self, challenges, terminals):
        raise NotImplementedError(f"{self.name}: 확장 종단 제약이 정의되지 않았습니다")

    def __repr__(self):
        return f"{type(self).__name__}({self.table!r})"


# ─────────────────────────────────────────────────────────────────────
# 제약 검사 (테스트/디버깅용)
# ─────────────────────────────────────────────────────────────────────

def transition_constraint_violations(constraints, matrix):
    """인접한 모든 행 쌍에서 0이 아닌 전이 제약을 찾는다.

    평가 점은 현재 행과 다음 행을 이어붙인 것이다.

    Returns:
        list[tuple]: (행 인덱스, 제약 인덱스) 리스트. 비어 있으면 만족.
    """
    violations = []
    for i in range(len(matrix) - 1):
        point = list(matrix[i]) + list(matrix[i + 1])
        for j, constraint in enumerate(constraints):
            if not constraint.evaluate(point).is_zero():
                violations.append((i, j))
    return violations


def row_constraint_violations(constraints, row):
    """한 행에서 0이 아닌 경계/종단 제약의 인덱스를 찾는다."""
    return [
        j for j, constraint in enumerate(constraints)
        if not constraint.evaluate(list(row)).is_zero()
    ]
