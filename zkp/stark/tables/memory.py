"""
메모리 테이블 (Memory Table)
=============================

메모리 접근의 일관성을 증명하는 테이블이다.

**열(column)**:
  | 인덱스 | 이름           | 체     | 설명                             |
  |--------|----------------|--------|----------------------------------|
  | 0      | cycle          | BField | 접근 시점의 클럭 사이클           |
  | 1      | memory_pointer | BField | 접근 주소                         |
  | 2      | memory_value   | BField | 그 시점의 메모리 값               |
  | 3      | interweaved    | BField | 합성(interweaved) 행 표시 (0/1)   |
  | 4      | permutation    | XField | 순열 인자 누적곱 (확장 후)        |

**유도(derivation)**:
  프로세서 트레이스를 (주소, 사이클) 순으로 정렬한다.
  같은 주소에서 사이클이 연속하지 않으면 그 사이를 합성 행으로 채워
  "주소별 사이클이 1씩 증가"하는 틈 없는 표를 만든다.

    주소 0: clk 3 (mv=7) ──┐                     clk 3 (mv=7, iw=0)
                            │  interweave        clk 4 (mv=7, iw=1)
    주소 0: clk 6 (mv=7) ──┘  ─────────▶        clk 5 (mv=7, iw=1)
                                                 clk 6 (mv=7, iw=0)

**순열 인자**:
  합성 행이 아닌 행마다 누적곱에 (β - d·clk - e·mp - f·mv) 를 곱한다.
  프로세서 테이블도 같은 인수를 곱하므로, 두 누적곱의 종단값이 같으면
  두 테이블이 같은 메모리 접근 집합을 기술한다.

사용 예시:
    >>> matrix = MemoryTable.derive_matrix(trace)
    >>> table = MemoryTable(len(matrix), 2, generator, order)
    >>> table.table.matrix = matrix
    >>> table.pad()
    >>> table.extend(challenges, initials)
"""

import logging

from zkp.stark.field import BField, XField, is_power_of_2
from zkp.stark.mpolynomial import MPolynomial, lift_coefficients_to_xfield
from zkp.stark.tables.base import MalformedTraceError, TableKind, TraceTable


logger = logging.getLogger(__name__)


class MemoryTableMore:
    """메모리 테이블의 보조 상태.

    속성:
        permutation_terminal: 순열 누적곱의 최종값 (extend 전에는 0)
    """

    def __init__(self):
        self.permutation_terminal = XField.zero()


class MemoryTable(TraceTable):
    KIND = TableKind.MEMORY
    NAME = "Memory table"

    # 기저 열 인덱스
    CYCLE = 0
    MEMORY_POINTER = 1
    MEMORY_VALUE = 2
    INTERWEAVED = 3

    # 확장 열 인덱스
    PERMUTATION = 4

    BASE_WIDTH = 4
    FULL_WIDTH = 5

    @classmethod
    def new_more(cls):
        return MemoryTableMore()

    # ─────────────────────────────────────────────────────────────────
    # 유도 및 패딩
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def derive_matrix(trace):
        """프로세서 트레이스로부터 정렬·interweave 된 메모리 행렬을 만든다.

        마지막 트레이스 행은 버린다: 마지막 명령이 쓴 값은 관측되지 않으므로
        제약할 필요가 없다.

        Args:
            trace: list[Register] (패딩되지 않은 트레이스)

        Returns:
            list[list[BField]]: 패딩 전 행렬

        Raises:
            MalformedTraceError: 마지막이 아닌 행의 명령어가 0일 때
        """
        matrix = []
        for i, register in enumerate(trace[:-1]):
            if register.current_instruction.is_zero():
                raise MalformedTraceError(
                    "메모리 행렬을 유도하려면 패딩되지 않은 트레이스가 필요합니다. "
                    f"{i}번 행의 명령어가 0입니다. 입력: {trace!r}",
                    row_index=i,
                    trace=trace,
                )
            matrix.append([
                register.cycle,
                register.memory_pointer,
                register.memory_value,
                BField(0),
            ])

        # 안정 정렬: 같은 주소 안에서는 사이클 순서가 유지된다
        matrix.sort(key=lambda row: row[MemoryTable.MEMORY_POINTER].value)

        # 같은 주소의 사이클이 1씩 증가하도록 합성 행을 끼워 넣는다
        one = BField(1)
        num_interweaved = 0
        i = 0
        while i < len(matrix) - 1:
            current, following = matrix[i], matrix[i + 1]
            if following[MemoryTable.MEMORY_POINTER] == current[MemoryTable.MEMORY_POINTER] \
                    and following[MemoryTable.CYCLE] != current[MemoryTable.CYCLE] + one:
                matrix.insert(i + 1, [
                    current[MemoryTable.CYCLE] + one,
                    current[MemoryTable.MEMORY_POINTER],
                    current[MemoryTable.MEMORY_VALUE],
                    one,
                ])
                num_interweaved += 1
            i += 1

        logger.debug(
            "derived memory matrix: %d rows (%d interweaved) from %d trace rows",
            len(matrix), num_interweaved, len(trace),
        )
        return matrix

    def pad(self):
        """행 수가 2의 거듭제곱이 될 때까지 마지막 행을 복제한다.

        복제 행은 cycle + 1, interweaved = 1 이다.
        합성 행은 값을 바꿀 수 없으므로 전이 제약을 그대로 만족한다.
        """
        matrix = self.table.matrix
        if not matrix:
            raise ValueError(f"{self.name}: 빈 행렬은 패딩할 수 없습니다 (실행한 명령이 없음)")
        one = BField(1)
        while not is_power_of_2(len(matrix)):
            padding = list(matrix[-1])
            padding[MemoryTable.CYCLE] = padding[MemoryTable.CYCLE] + one
            padding[MemoryTable.INTERWEAVED] = one
            matrix.append(padding)
        logger.debug("padded %s to %d rows", self.name, len(matrix))

    # ─────────────────────────────────────────────────────────────────
    # 기저체 제약
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def transition_constraints_afo_named_variables(
            cycle, address, value, interweaved,
            cycle_next, address_next, value_next, interweaved_next):
        """이름 붙은 변수로 6개의 전이 제약을 만든다.

        기저 테이블과 확장 테이블이 같은 다항식을 공유한다.
        """
        one = MPolynomial.constant(cycle.field.one(), cycle.num_variables)

        polynomials = []

        # 1. 주소는 그대로이거나 1 증가한다
        #    <=> (MP' = MP + 1) ∨ (MP' = MP)
        polynomials.append((address_next - address - one) * (address_next - address))

        # 2. 주소가 그대로이면 사이클이 1 증가한다
        polynomials.append((address_next - address - one) * (cycle_next - cycle - one))

        # 3. 합성 행 다음에는 주소가 바뀌지 않는다
        polynomials.append(interweaved * (address_next - address))

        # 4. 합성 행 다음에는 값이 바뀌지 않는다
        polynomials.append(interweaved * (value - value_next))

        # 5. 다음 행의 interweaved 는 0 또는 1.
        #    다음 행을 검사해야 마지막 행까지 덮인다.
        #    0번 행의 값은 프로세서 테이블과의 순열 인자가 잡아낸다.
        polynomials.append(interweaved_next * (interweaved_next - one))

        # 6. 주소가 1 증가하면 새 주소의 값은 0이다
        polynomials.append((address_next - address) * value_next)

        return polynomials

    def base_transition_constraints(self):
        variables = MPolynomial.variables(2 * self.BASE_WIDTH, BField)
        return MemoryTable.transition_constraints_afo_named_variables(*variables)

    def base_boundary_constraints(self):
        x = MPolynomial.variables(self.BASE_WIDTH, BField)
        return [
            x[MemoryTable.CYCLE],
            x[MemoryTable.MEMORY_POINTER],
            x[MemoryTable.MEMORY_VALUE],
        ]

    # ─────────────────────────────────────────────────────────────────
    # 확장 및 순열 인자
    # ─────────────────────────────────────────────────────────────────

    def extend(self, challenges, initials):
        """확장체 행렬과 순열 누적곱 열을 계산한다.

        permutation 열의 i번째 값은 i번째 행의 인수를 곱하기 *전* 누적곱이다.

        Args:
            challenges: Challenges (d, e, f, beta 사용)
            initials: Initials (processor_memory_permutation 사용)
        """
        d, e, f, beta = challenges.d, challenges.e, challenges.f, challenges.beta

        running_product = initials.processor_memory_permutation
        extended_matrix = []
        for row in self.table.matrix:
            new_row = [XField.lift(value) for value in row]
            new_row.append(running_product)

            if row[MemoryTable.INTERWEAVED].is_zero():
                running_product = running_product * (
                    beta
                    - d * new_row[MemoryTable.CYCLE]
                    - e * new_row[MemoryTable.MEMORY_POINTER]
                    - f * new_row[MemoryTable.MEMORY_VALUE]
                )
            extended_matrix.append(new_row)

        self.table.extended_matrix = extended_matrix
        self._lift_codewords()
        self.table.more.permutation_terminal = running_product
        logger.debug("extended %s: %d rows", self.name, len(extended_matrix))

    # ─────────────────────────────────────────────────────────────────
    # 확장체 제약
    # ─────────────────────────────────────────────────────────────────

    def transition_constraints_ext(self, challenges):
        num_variables = 2 * self.FULL_WIDTH

        (b_cycle, b_address, b_value, b_interweaved, _b_permutation,
         b_cycle_next, b_address_next, b_value_next, b_interweaved_next,
         _b_permutation_next) = MPolynomial.variables(num_variables, BField)

        base_polynomials = MemoryTable.transition_constraints_afo_named_variables(
            b_cycle, b_address, b_value, b_interweaved,
            b_cycle_next, b_address_next, b_value_next, b_interweaved_next,
        )
        polynomials = [lift_coefficients_to_xfield(p) for p in base_polynomials]

        (cycle, address, value, interweaved, permutation,
         _cycle_next, _address_next, _value_next, _interweaved_next,
         permutation_next) = MPolynomial.variables(num_variables, XField)

        d, e, f, beta = [
            MPolynomial.constant(ch, num_variables)
            for ch in (challenges.d, challenges.e, challenges.f, challenges.beta)
        ]
        one = MPolynomial.constant(XField.one(), num_variables)

        # 합성 행에서는 누적곱이 그대로, 아니면 인수를 곱한다
        polynomials.append(
            permutation
            * ((beta - d * cycle - e * address - f * value) * (one - interweaved)
               + interweaved)
            - permutation_next
        )

        return polynomials

    def boundary_constraints_ext(self, challenges):
        # 0번 행의 interweaved 는 고정하지 않는다 (순열 인자에 맡김)
        x = MPolynomial.variables(self.FULL_WIDTH, XField)
        return [
            x[MemoryTable.CYCLE],
            x[MemoryTable.MEMORY_POINTER],
            x[MemoryTable.MEMORY_VALUE],
        ]

    def terminal_constraints_ext(self, challenges, terminals):
        num_variables = self.FULL_WIDTH
        x = MPolynomial.variables(num_variables, XField)

        d, e, f, beta = [
            MPolynomial.constant(ch, num_variables)
            for ch in (challenges.d, challenges.e, challenges.f, challenges.beta)
        ]
        one = MPolynomial.constant(XField.one(), num_variables)
        terminal = MPolynomial.constant(terminals.processor_memory_permutation, num_variables)

        permutation = x[MemoryTable.PERMUTATION]
        interweaved = x[MemoryTable.INTERWEAVED]
        factor = (beta
                  - d * x[MemoryTable.CYCLE]
                  - e * x[MemoryTable.MEMORY_POINTER]
                  - f * x[MemoryTable.MEMORY_VALUE])

        return [
            (permutation * factor - terminal) * (one - interweaved)
            + (permutation - terminal) * interweaved
        ]
