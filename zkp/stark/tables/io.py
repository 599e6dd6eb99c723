"""
입출력 테이블 (Input / Output Table)
=====================================

VM 이 읽은 입력 기호와 출력한 기호를 순서대로 담는 1열 테이블.

**열(column)**:
  | 인덱스 | 이름       | 체     |
  |--------|------------|--------|
  | 0      | column     | BField |
  | 1      | evaluation | XField |

**평가 인자 (evaluation argument)**:
  기호 열 s₀, s₁, ..., s_{n-1} 을 챌린지 ι 에서의 다항식 평가로 압축한다.

    e₀ = s₀
    e_{i+1} = e_i · ι + s_{i+1}

  종단값 e_{n-1} 은 공개된 입출력으로부터 검증자가 직접 계산할 수 있다.
  패딩 행(기호 0)마다 ι 가 한 번 더 곱해지므로, 마지막 행의 값은
  종단값 × ι^(height - length) 이다.

  | 테이블 | 명령 | 챌린지 | 종단값                               |
  |--------|------|--------|--------------------------------------|
  | 입력   | ,    | gamma  | EvaluationTerminals.input_evaluation  |
  | 출력   | .    | delta  | EvaluationTerminals.output_evaluation |

입출력이 없는 프로그램의 테이블은 비어 있다 (length = height = 0).
"""

import logging

from zkp.stark.field import BField, XField
from zkp.stark.mpolynomial import MPolynomial
from zkp.stark.tables.base import MalformedTraceError, TableKind, TraceTable


logger = logging.getLogger(__name__)


def evaluation_terminal(symbols, iota):
    """기호 열의 평가 인자 종단값을 계산한다 (빈 열이면 0).

    Args:
        symbols: BField 리스트
        iota: XField 챌린지
    """
    acc = XField.zero()
    for symbol in symbols:
        acc = acc * iota + XField.lift(symbol)
    return acc


class IOTableMore:
    def __init__(self):
        self.evaluation_terminal = XField.zero()


class IOTable(TraceTable):
    """입력/출력 테이블의 공통 구현.

    서브클래스는 INSTRUCTION(대상 명령), CHALLENGE(챌린지 이름),
    TERMINAL(EvaluationTerminals 필드 이름)을 정한다.
    """

    COLUMN = 0
    EVALUATION = 1

    BASE_WIDTH = 1
    FULL_WIDTH = 2

    INSTRUCTION = None
    CHALLENGE = None
    TERMINAL = None

    @classmethod
    def new_more(cls):
        return IOTableMore()

    @classmethod
    def derive(cls, trace, program):
        return cls.derive_matrix(cls.symbols_from_trace(trace))

    @staticmethod
    def derive_matrix(symbols):
        return [[BField(symbol)] for symbol in symbols]

    @classmethod
    def symbols_from_trace(cls, trace):
        raise NotImplementedError(f"{cls.NAME}: 기호 추출이 정의되지 않았습니다")

    @classmethod
    def _instruction_rows(cls, trace):
        """INSTRUCTION 을 실행한 행의 인덱스를 순서대로 돌려준다."""
        opcode = BField(ord(cls.INSTRUCTION))
        last = len(trace) - 1
        indices = []
        for i, register in enumerate(trace):
            if register.current_instruction.is_zero() and i != last:
                raise MalformedTraceError(
                    f"{cls.NAME} 를 유도하려면 패딩되지 않은 트레이스가 필요합니다. "
                    f"{i}번 행의 명령어가 0입니다.",
                    row_index=i,
                    trace=trace,
                )
            if register.current_instruction == opcode:
                indices.append(i)
        return indices

    def pad(self):
        """행 수가 2의 거듭제곱(또는 0)이 될 때까지 0 기호를 붙인다."""
        matrix = self.table.matrix
        while len(matrix) & (len(matrix) - 1) != 0:
            matrix.append([BField(0)])
        logger.debug("padded %s to %d rows", self.name, len(matrix))

    # ─────────────────────────────────────────────────────────────────
    # 기저체 제약
    # ─────────────────────────────────────────────────────────────────

    def base_transition_constraints(self):
        # 기호 열은 기저체에서 자유롭다. 내용은 평가 인자가 묶는다.
        return []

    def base_boundary_constraints(self):
        return []

    # ─────────────────────────────────────────────────────────────────
    # 확장 및 평가 인자
    # ─────────────────────────────────────────────────────────────────

    def iota(self, challenges):
        return getattr(challenges, self.CHALLENGE)

    def extend(self, challenges, initials):
        """평가 누적값 열을 계산한다. initials 는 쓰지 않는다."""
        iota = self.iota(challenges)

        running_evaluation = XField.zero()
        terminal = XField.zero()
        extended_matrix = []
        for i, row in enumerate(self.table.matrix):
            new_row = [XField.lift(value) for value in row]
            running_evaluation = running_evaluation * iota + new_row[IOTable.COLUMN]
            new_row.append(running_evaluation)
            if i == self.length - 1:
                terminal = running_evaluation
            extended_matrix.append(new_row)

        self.table.extended_matrix = extended_matrix
        self._lift_codewords()
        self.table.more.evaluation_terminal = terminal
        logger.debug("extended %s: %d rows", self.name, len(extended_matrix))

    # ─────────────────────────────────────────────────────────────────
    # 확장체 제약
    # ─────────────────────────────────────────────────────────────────

    def transition_constraints_ext(self, challenges):
        num_variables = 2 * self.FULL_WIDTH
        _symbol, evaluation, symbol_next, evaluation_next = \
            MPolynomial.variables(num_variables, XField)
        iota = MPolynomial.constant(self.iota(challenges), num_variables)
        return [evaluation * iota + symbol_next - evaluation_next]

    def boundary_constraints_ext(self, challenges):
        x = MPolynomial.variables(self.FULL_WIDTH, XField)
        return [x[IOTable.EVALUATION] - x[IOTable.COLUMN]]

    def terminal_constraints_ext(self, challenges, terminals):
        """terminals 는 EvaluationTerminals 이다."""
        x = MPolynomial.variables(self.FULL_WIDTH, XField)
        offset = self.iota(challenges) ** (self.height - self.length)
        actual_terminal = MPolynomial.constant(
            getattr(terminals, self.TERMINAL) * offset, self.FULL_WIDTH)
        return [x[IOTable.EVALUATION] - actual_terminal]


class InputTable(IOTable):
    KIND = TableKind.INPUT
    NAME = "Input table"
    INSTRUCTION = ","
    CHALLENGE = "gamma"
    TERMINAL = "input_evaluation"

    @classmethod
    def symbols_from_trace(cls, trace):
        # ',' 가 쓴 값은 다음 행의 memory_value 에 보인다
        return [trace[i + 1].memory_value for i in cls._instruction_rows(trace)]


class OutputTable(IOTable):
    KIND = TableKind.OUTPUT
    NAME = "Output table"
    INSTRUCTION = "."
    CHALLENGE = "delta"
    TERMINAL = "output_evaluation"

    @classmethod
    def symbols_from_trace(cls, trace):
        return [trace[i].memory_value for i in cls._instruction_rows(trace)]
