"""
프로세서 테이블 (Processor Table)
==================================

VM의 사이클별 레지스터 상태를 그대로 담는 테이블이다.
메모리 테이블, 명령어 테이블과 순열 인자로 연결된다.

**열(column)**:
  | 인덱스 | 이름                    | 체     |
  |--------|-------------------------|--------|
  | 0      | cycle                   | BField |
  | 1      | instruction_pointer     | BField |
  | 2      | current_instruction     | BField |
  | 3      | next_instruction        | BField |
  | 4      | memory_pointer          | BField |
  | 5      | memory_value            | BField |
  | 6      | memory_value_inverse    | BField |
  | 7      | instruction_permutation | XField |
  | 8      | memory_permutation      | XField |

**명령어 선택자(deselector)**:
  명령어별 제약은 ifnot_instruction(c, ci) 를 곱해 해당 명령에서만 켜진다.
    ifnot_instruction(c, ci) = ∏_{c' ≠ c} (ci - c')
  ci = c 일 때만 0이 아니다. 또한 명령어별 제약에는 ci 를 곱해
  패딩 행(ci = 0)에서 꺼지게 한다.

**mv 가 0인지 판별**:
  memory_value_inverse(mvi)는 mv ≠ 0 이면 mv⁻¹, mv = 0 이면 0 이다.
  mv·mvi - 1 은 mv ≠ 0 이면 0, mv = 0 이면 -1 이 된다.
"""

import logging

from zkp.stark.field import BField, XField, is_power_of_2
from zkp.stark.mpolynomial import MPolynomial, lift_coefficients_to_xfield
from zkp.stark.tables.base import TableKind, TraceTable
from zkp.stark.vm import INSTRUCTIONS


logger = logging.getLogger(__name__)


def ifnot_instruction(symbol, indeterminate):
    """symbol 을 제외한 모든 명령에서 0이 되는 다항식 (차수 7)."""
    acc = MPolynomial.constant(indeterminate.field.one(), indeterminate.num_variables)
    for other in INSTRUCTIONS:
        if other != symbol:
            acc = acc * (indeterminate - ord(other))
    return acc


def instruction_zerofier(indeterminate):
    """모든 명령에서 0이 되는 다항식 (차수 8). ci = 0 에서는 0이 아니다."""
    acc = MPolynomial.constant(indeterminate.field.one(), indeterminate.num_variables)
    for symbol in INSTRUCTIONS:
        acc = acc * (indeterminate - ord(symbol))
    return acc


class ProcessorTableMore:
    """프로세서 테이블의 보조 상태 (두 순열 인자의 종단값)."""

    def __init__(self):
        self.instruction_permutation_terminal = XField.zero()
        self.memory_permutation_terminal = XField.zero()


class ProcessorTable(TraceTable):
    KIND = TableKind.PROCESSOR
    NAME = "Processor table"

    # 기저 열 인덱스
    CYCLE = 0
    INSTRUCTION_POINTER = 1
    CURRENT_INSTRUCTION = 2
    NEXT_INSTRUCTION = 3
    MEMORY_POINTER = 4
    MEMORY_VALUE = 5
    MEMORY_VALUE_INVERSE = 6

    # 확장 열 인덱스
    INSTRUCTION_PERMUTATION = 7
    MEMORY_PERMUTATION = 8

    BASE_WIDTH = 7
    FULL_WIDTH = 9

    @classmethod
    def new_more(cls):
        return ProcessorTableMore()

    @staticmethod
    def derive_matrix(trace):
        """트레이스의 각 레지스터를 한 행으로 옮긴다 (종료 행 포함)."""
        matrix = [register.to_row() for register in trace]
        logger.debug("derived processor matrix: %d rows", len(matrix))
        return matrix

    def pad(self):
        """명령어가 0인 행으로 패딩한다. 사이클만 1씩 증가한다."""
        matrix = self.table.matrix
        if not matrix:
            raise ValueError(f"{self.name}: 빈 행렬은 패딩할 수 없습니다 (실행한 명령이 없음)")
        while not is_power_of_2(len(matrix)):
            last = matrix[-1]
            new_row = [BField(0)] * self.BASE_WIDTH
            new_row[ProcessorTable.CYCLE] = last[ProcessorTable.CYCLE] + BField(1)
            new_row[ProcessorTable.INSTRUCTION_POINTER] = last[ProcessorTable.INSTRUCTION_POINTER]
            new_row[ProcessorTable.MEMORY_POINTER] = last[ProcessorTable.MEMORY_POINTER]
            new_row[ProcessorTable.MEMORY_VALUE] = last[ProcessorTable.MEMORY_VALUE]
            new_row[ProcessorTable.MEMORY_VALUE_INVERSE] = last[ProcessorTable.MEMORY_VALUE_INVERSE]
            matrix.append(new_row)
        logger.debug("padded %s to %d rows", self.name, len(matrix))

    # ─────────────────────────────────────────────────────────────────
    # 기저체 제약
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def instruction_polynomials(
            symbol, cycle, instruction_pointer, current_instruction, next_instruction,
            memory_pointer, memory_value, memory_value_inverse,
            cycle_next, instruction_pointer_next, current_instruction_next,
            next_instruction_next, memory_pointer_next, memory_value_next,
            memory_value_inverse_next):
        """명령어 symbol 의 (ip 갱신, mp 갱신, mv 갱신) 제약 3개를 반환한다."""
        zero = MPolynomial.zero(cycle.num_variables, cycle.field)
        one = MPolynomial.constant(cycle.field.one(), cycle.num_variables)
        two = one + one
        memory_value_is_zero = memory_value * memory_value_inverse - one

        if symbol == "[":
            polynomials = [
                memory_value * (instruction_pointer_next - instruction_pointer - two)
                + memory_value_is_zero * (instruction_pointer_next - next_instruction),
                memory_pointer_next - memory_pointer,
                memory_value_next - memory_value,
            ]
        elif symbol == "]":
            polynomials = [
                memory_value_is_zero * (instruction_pointer_next - instruction_pointer - two)
                + memory_value * (instruction_pointer_next - next_instruction),
                memory_pointer_next - memory_pointer,
                memory_value_next - memory_value,
            ]
        elif symbol == "<":
            # 새 주소의 값은 메모리 순열 인자가 보증한다
            polynomials = [
                instruction_pointer_next - instruction_pointer - one,
                memory_pointer_next - memory_pointer + one,
                zero,
            ]
        elif symbol == ">":
            polynomials = [
                instruction_pointer_next - instruction_pointer - one,
                memory_pointer_next - memory_pointer - one,
                zero,
            ]
        elif symbol == "+":
            polynomials = [
                instruction_pointer_next - instruction_pointer - one,
                memory_pointer_next - memory_pointer,
                memory_value_next - memory_value - one,
            ]
        elif symbol == "-":
            polynomials = [
                instruction_pointer_next - instruction_pointer - one,
                memory_pointer_next - memory_pointer,
                memory_value_next - memory_value + one,
            ]
        elif symbol == ",":
            # 읽은 값은 입력 평가 인자의 몫
            polynomials = [
                instruction_pointer_next - instruction_pointer - one,
                memory_pointer_next - memory_pointer,
                zero,
            ]
        elif symbol == ".":
            polynomials = [
                instruction_pointer_next - instruction_pointer - one,
                memory_pointer_next - memory_pointer,
                memory_value_next - memory_value,
            ]
        else:
            raise ValueError(f"알 수 없는 명령어입니다: {symbol!r}")

        # 패딩 행(ci = 0)에서는 모두 끈다
        return [p * current_instruction for p in polynomials]

    @staticmethod
    def transition_constraints_afo_named_variables(*variables):
        """14개 변수(현재 행 ‖ 다음 행)로 6개의 전이 제약을 만든다."""
        (cycle, instruction_pointer, current_instruction, next_instruction,
         memory_pointer, memory_value, memory_value_inverse,
         cycle_next, instruction_pointer_next, current_instruction_next,
         next_instruction_next, memory_pointer_next, memory_value_next,
         memory_value_inverse_next) = variables

        zero = MPolynomial.zero(cycle.num_variables, cycle.field)
        one = MPolynomial.constant(cycle.field.one(), cycle.num_variables)

        polynomials = [zero, zero, zero]
        for symbol in INSTRUCTIONS:
            instruction = ProcessorTable.instruction_polynomials(symbol, *variables)
            deselector = ifnot_instruction(symbol, current_instruction)
            for i in range(len(polynomials)):
                polynomials[i] = polynomials[i] + deselector * instruction[i]

        # 사이클은 1씩 증가
        polynomials.append(cycle_next - cycle - one)

        # memory_value_inverse 규칙
        memory_value_is_zero = memory_value * memory_value_inverse - one
        polynomials.append(memory_value * memory_value_is_zero)
        polynomials.append(memory_value_inverse * memory_value_is_zero)

        return polynomials

    def base_transition_constraints(self):
        variables = MPolynomial.variables(2 * self.BASE_WIDTH, BField)
        return ProcessorTable.transition_constraints_afo_named_variables(*variables)

    def base_boundary_constraints(self):
        x = MPolynomial.variables(self.BASE_WIDTH, BField)
        return [
            x[ProcessorTable.CYCLE],
            x[ProcessorTable.INSTRUCTION_POINTER],
            x[ProcessorTable.MEMORY_POINTER],
            x[ProcessorTable.MEMORY_VALUE],
            x[ProcessorTable.MEMORY_VALUE_INVERSE],
        ]

    # ─────────────────────────────────────────────────────────────────
    # 확장 및 순열 인자
    # ─────────────────────────────────────────────────────────────────

    def extend(self, challenges, initials):
        """두 순열 누적곱 열을 계산한다.

        명령어가 0이 아닌 행마다 인수를 곱한다. 열 값은 곱하기 전 누적곱이다.
        """
        a, b, c = challenges.a, challenges.b, challenges.c
        d, e, f = challenges.d, challenges.e, challenges.f
        alpha, beta = challenges.alpha, challenges.beta

        instruction_running_product = initials.processor_instruction_permutation
        memory_running_product = initials.processor_memory_permutation

        extended_matrix = []
        for row in self.table.matrix:
            new_row = [XField.lift(value) for value in row]
            new_row.append(instruction_running_product)
            new_row.append(memory_running_product)

            if not row[ProcessorTable.CURRENT_INSTRUCTION].is_zero():
                instruction_running_product = instruction_running_product * (
                    alpha
                    - a * new_row[ProcessorTable.INSTRUCTION_POINTER]
                    - b * new_row[ProcessorTable.CURRENT_INSTRUCTION]
                    - c * new_row[ProcessorTable.NEXT_INSTRUCTION]
                )
                memory_running_product = memory_running_product * (
                    beta
                    - d * new_row[ProcessorTable.CYCLE]
                    - e * new_row[ProcessorTable.MEMORY_POINTER]
                    - f * new_row[ProcessorTable.MEMORY_VALUE]
                )
            extended_matrix.append(new_row)

        self.table.extended_matrix = extended_matrix
        self._lift_codewords()
        self.table.more.instruction_permutation_terminal = instruction_running_product
        self.table.more.memory_permutation_terminal = memory_running_product
        logger.debug("extended %s: %d rows", self.name, len(extended_matrix))

    # ─────────────────────────────────────────────────────────────────
    # 확장체 제약
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _permutation_factors(challenges, num_variables, row):
        """(명령어 순열 인수, 메모리 순열 인수) 다항식 쌍."""
        a, b, c, d, e, f, alpha, beta = [
            MPolynomial.constant(ch, num_variables)
            for ch in (challenges.a, challenges.b, challenges.c,
                       challenges.d, challenges.e, challenges.f,
                       challenges.alpha, challenges.beta)
        ]
        instruction_factor = (alpha
                              - a * row[ProcessorTable.INSTRUCTION_POINTER]
                              - b * row[ProcessorTable.CURRENT_INSTRUCTION]
                              - c * row[ProcessorTable.NEXT_INSTRUCTION])
        memory_factor = (beta
                         - d * row[ProcessorTable.CYCLE]
                         - e * row[ProcessorTable.MEMORY_POINTER]
                         - f * row[ProcessorTable.MEMORY_VALUE])
        return instruction_factor, memory_factor

    def transition_constraints_ext(self, challenges):
        num_variables = 2 * self.FULL_WIDTH
        width = self.FULL_WIDTH

        b_variables = MPolynomial.variables(num_variables, BField)
        base_polynomials = ProcessorTable.transition_constraints_afo_named_variables(
            *(b_variables[:self.BASE_WIDTH] + b_variables[width:width + self.BASE_WIDTH])
        )
        polynomials = [lift_coefficients_to_xfield(p) for p in base_polynomials]

        x = MPolynomial.variables(num_variables, XField)
        current, following = x[:width], x[width:]
        current_instruction = current[ProcessorTable.CURRENT_INSTRUCTION]
        zerofier = instruction_zerofier(current_instruction)

        instruction_factor, memory_factor = ProcessorTable._permutation_factors(
            challenges, num_variables, current)

        instruction_permutation = current[ProcessorTable.INSTRUCTION_PERMUTATION]
        instruction_permutation_next = following[ProcessorTable.INSTRUCTION_PERMUTATION]
        polynomials.append(
            (instruction_permutation * instruction_factor - instruction_permutation_next)
            * current_instruction
            + (instruction_permutation - instruction_permutation_next) * zerofier
        )

        memory_permutation = current[ProcessorTable.MEMORY_PERMUTATION]
        memory_permutation_next = following[ProcessorTable.MEMORY_PERMUTATION]
        polynomials.append(
            (memory_permutation * memory_factor - memory_permutation_next)
            * current_instruction
            + (memory_permutation - memory_permutation_next) * zerofier
        )

        return polynomials

    def boundary_constraints_ext(self, challenges):
        x = MPolynomial.variables(self.FULL_WIDTH, XField)
        return [
            x[ProcessorTable.CYCLE],
            x[ProcessorTable.INSTRUCTION_POINTER],
            x[ProcessorTable.MEMORY_POINTER],
            x[ProcessorTable.MEMORY_VALUE],
            x[ProcessorTable.MEMORY_VALUE_INVERSE],
        ]

    def terminal_constraints_ext(self, challenges, terminals):
        num_variables = self.FULL_WIDTH
        x = MPolynomial.variables(num_variables, XField)
        current_instruction = x[ProcessorTable.CURRENT_INSTRUCTION]
        zerofier = instruction_zerofier(current_instruction)

        instruction_factor, memory_factor = ProcessorTable._permutation_factors(
            challenges, num_variables, x)
        instruction_terminal = MPolynomial.constant(
            terminals.processor_instruction_permutation, num_variables)
        memory_terminal = MPolynomial.constant(
            terminals.processor_memory_permutation, num_variables)

        instruction_permutation = x[ProcessorTable.INSTRUCTION_PERMUTATION]
        memory_permutation = x[ProcessorTable.MEMORY_PERMUTATION]

        return [
            (instruction_permutation * instruction_factor - instruction_terminal)
            * current_instruction
            + (instruction_permutation - instruction_terminal) * zerofier,
            (memory_permutation * memory_factor - memory_terminal)
            * current_instruction
            + (memory_permutation - memory_terminal) * zerofier,
        ]
