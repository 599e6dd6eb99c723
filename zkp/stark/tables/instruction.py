"""
명령어 테이블 (Instruction Table)
==================================

프로세서가 실행한 명령이 실제로 프로그램에 있는 명령인지 보증한다.

**열(column)**:
  | 인덱스 | 이름                | 체     |
  |--------|---------------------|--------|
  | 0      | address             | BField |
  | 1      | current_instruction | BField |
  | 2      | next_instruction    | BField |
  | 3      | permutation         | XField |

**유도(derivation)**:
  프로그램의 각 주소마다 (주소, 명령, 다음 명령) 행 하나,
  그리고 프로세서가 그 주소를 실행할 때마다 같은 행 하나를 더한 뒤
  주소 순으로 안정 정렬한다. 각 주소 묶음의 첫 행은 프로그램 행이다.

    주소 0: (0, '+', '+')   ← 프로그램
            (0, '+', '+')   ← 실행 (사이클 0)
    주소 1: (1, '+', '.')   ← 프로그램
            (1, '+', '.')   ← 실행 (사이클 1)

**순열 인자**:
  묶음 안의 행(주소가 직전 행과 같은 행)마다 (α - a·addr - b·ci - c·ni) 를 곱한다.
  이 테이블의 permutation 열은 해당 행의 인수까지 곱한 누적곱이다.
"""

import logging

from zkp.stark.field import BField, XField, is_power_of_2
from zkp.stark.mpolynomial import MPolynomial, lift_coefficients_to_xfield
from zkp.stark.tables.base import MalformedTraceError, TableKind, TraceTable


logger = logging.getLogger(__name__)


class InstructionTableMore:
    def __init__(self):
        self.permutation_terminal = XField.zero()


class InstructionTable(TraceTable):
    KIND = TableKind.INSTRUCTION
    NAME = "Instruction table"

    ADDRESS = 0
    CURRENT_INSTRUCTION = 1
    NEXT_INSTRUCTION = 2

    PERMUTATION = 3

    BASE_WIDTH = 3
    FULL_WIDTH = 4

    @classmethod
    def new_more(cls):
        return InstructionTableMore()

    @classmethod
    def derive(cls, trace, program):
        return cls.derive_matrix(program, trace)

    @staticmethod
    def derive_matrix(program, trace):
        """프로그램과 트레이스로부터 주소순 명령어 행렬을 만든다.

        Raises:
            MalformedTraceError: 마지막이 아닌 트레이스 행의 명령어가 0일 때
        """
        matrix = []
        for i, instruction in enumerate(program):
            next_instruction = program[i + 1] if i + 1 < len(program) else BField(0)
            matrix.append([BField(i), instruction, next_instruction])

        last = len(trace) - 1
        for i, register in enumerate(trace):
            if register.current_instruction.is_zero():
                if i != last:
                    raise MalformedTraceError(
                        "명령어 행렬을 유도하려면 패딩되지 않은 트레이스가 필요합니다. "
                        f"{i}번 행의 명령어가 0입니다.",
                        row_index=i,
                        trace=trace,
                    )
                continue
            matrix.append([
                register.instruction_pointer,
                register.current_instruction,
                register.next_instruction,
            ])

        matrix.sort(key=lambda row: row[InstructionTable.ADDRESS].value)
        logger.debug(
            "derived instruction matrix: %d rows (program %d)", len(matrix), len(program)
        )
        return matrix

    def pad(self):
        """주소를 1씩 올리고 명령어는 0인 행으로 패딩한다."""
        matrix = self.table.matrix
        if not matrix:
            raise ValueError(f"{self.name}: 빈 행렬은 패딩할 수 없습니다 (실행한 명령이 없음)")
        while not is_power_of_2(len(matrix)):
            address = matrix[-1][InstructionTable.ADDRESS] + BField(1)
            matrix.append([address, BField(0), BField(0)])
        logger.debug("padded %s to %d rows", self.name, len(matrix))

    # ─────────────────────────────────────────────────────────────────
    # 기저체 제약
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def transition_constraints_afo_named_variables(
            address, current_instruction, next_instruction,
            address_next, current_instruction_next, next_instruction_next):
        one = MPolynomial.constant(address.field.one(), address.num_variables)
        return [
            # 주소는 그대로이거나 1 증가
            (address_next - address - one) * (address_next - address),
            # 주소가 바뀌면 직전 행의 next_instruction 이 새 행의 명령이다
            (address_next - address) * (next_instruction - current_instruction_next),
            # 주소가 같으면 명령이 같다
            (address_next - address - one) * (current_instruction_next - current_instruction),
            (address_next - address - one) * (next_instruction_next - next_instruction),
        ]

    def base_transition_constraints(self):
        variables = MPolynomial.variables(2 * self.BASE_WIDTH, BField)
        return InstructionTable.transition_constraints_afo_named_variables(*variables)

    def base_boundary_constraints(self):
        x = MPolynomial.variables(self.BASE_WIDTH, BField)
        return [x[InstructionTable.ADDRESS]]

    # ─────────────────────────────────────────────────────────────────
    # 확장 및 순열 인자
    # ─────────────────────────────────────────────────────────────────

    def extend(self, challenges, initials):
        a, b, c, alpha = challenges.a, challenges.b, challenges.c, challenges.alpha

        running_product = initials.processor_instruction_permutation
        extended_matrix = []
        previous_address = None
        for row in self.table.matrix:
            new_row = [XField.lift(value) for value in row]
            if previous_address is not None and row[InstructionTable.ADDRESS] == previous_address:
                running_product = running_product * (
                    alpha
                    - a * new_row[InstructionTable.ADDRESS]
                    - b * new_row[InstructionTable.CURRENT_INSTRUCTION]
                    - c * new_row[InstructionTable.NEXT_INSTRUCTION]
                )
            new_row.append(running_product)
            extended_matrix.append(new_row)
            previous_address = row[InstructionTable.ADDRESS]

        self.table.extended_matrix = extended_matrix
        self._lift_codewords()
        self.table.more.permutation_terminal = running_product
        logger.debug("extended %s: %d rows", self.name, len(extended_matrix))

    # ─────────────────────────────────────────────────────────────────
    # 확장체 제약
    # ─────────────────────────────────────────────────────────────────

    def transition_constraints_ext(self, challenges):
        num_variables = 2 * self.FULL_WIDTH

        (b_address, b_current, b_next, _b_permutation,
         b_address_next, b_current_next, b_next_next,
         _b_permutation_next) = MPolynomial.variables(num_variables, BField)
        polynomials = [
            lift_coefficients_to_xfield(p)
            for p in InstructionTable.transition_constraints_afo_named_variables(
                b_address, b_current, b_next, b_address_next, b_current_next, b_next_next)
        ]

        (address, _current, _next, permutation,
         address_next, current_next, next_next,
         permutation_next) = MPolynomial.variables(num_variables, XField)

        a, b, c, alpha = [
            MPolynomial.constant(ch, num_variables)
            for ch in (challenges.a, challenges.b, challenges.c, challenges.alpha)
        ]
        one = MPolynomial.constant(XField.one(), num_variables)

        # 같은 주소면 다음 행의 인수를 곱하고, 주소가 바뀌면 그대로
        polynomials.append(
            (permutation * (alpha - a * address_next - b * current_next - c * next_next)
             - permutation_next) * (address + one - address_next)
            + (permutation - permutation_next) * (address_next - address)
        )
        return polynomials

    def boundary_constraints_ext(self, challenges):
        x = MPolynomial.variables(self.FULL_WIDTH, XField)
        return [x[InstructionTable.ADDRESS]]

    def terminal_constraints_ext(self, challenges, terminals):
        x = MPolynomial.variables(self.FULL_WIDTH, XField)
        terminal = MPolynomial.constant(
            terminals.processor_instruction_permutation, self.FULL_WIDTH)
        return [x[InstructionTable.PERMUTATION] - terminal]
