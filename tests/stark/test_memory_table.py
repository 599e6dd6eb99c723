"""
Memory table tests: derivation, interweaving, padding, constraints, extension
"""
import pytest
from zkp.stark.arguments import Terminals
from zkp.stark.field import BField, XField, is_power_of_2
from zkp.stark.tables import (
    MalformedTraceError, MemoryTable,
    row_constraint_violations, transition_constraint_violations,
)
from zkp.stark.vm import Register, SAMPLE_PROGRAMS

from trace_helpers import NUM_RANDOMIZERS, ORDER, run_program


def memory_table(source, generator):
    _, trace, _ = run_program(source)
    return MemoryTable.from_trace(trace, None, NUM_RANDOMIZERS, generator, ORDER)


def as_ints(matrix):
    return [[int(v) for v in row] for row in matrix]


def memory_terminals(table):
    return Terminals(XField.zero(), table.more.permutation_terminal)


# =====================================================================
# Derivation
# =====================================================================

class TestDerive:
    def test_interweave_scenario(self):
        _, trace, _ = run_program("+++>++<.")
        matrix = MemoryTable.derive_matrix(trace)
        assert as_ints(matrix) == [
            [0, 0, 0, 0],
            [1, 0, 1, 0],
            [2, 0, 2, 0],
            [3, 0, 3, 0],
            [4, 0, 3, 1],
            [5, 0, 3, 1],
            [6, 0, 3, 1],
            [7, 0, 3, 0],
            [4, 1, 0, 0],
            [5, 1, 1, 0],
            [6, 1, 2, 0],
        ]

    def test_drops_final_row(self):
        _, trace, _ = run_program(",+.")
        matrix = MemoryTable.derive_matrix(trace)
        assert len(matrix) == len(trace) - 1

    @pytest.mark.parametrize("source", SAMPLE_PROGRAMS)
    def test_sorted_and_gapless(self, source):
        _, trace, _ = run_program(source)
        matrix = MemoryTable.derive_matrix(trace)
        assert matrix
        for current, following in zip(matrix, matrix[1:]):
            assert following[1].value >= current[1].value
            if following[1] == current[1]:
                assert following[0] == current[0] + BField(1)

    def test_malformed_trace(self):
        _, trace, _ = run_program("+>+")
        malformed = trace + [Register(cycle=len(trace))]
        with pytest.raises(MalformedTraceError) as excinfo:
            MemoryTable.derive_matrix(malformed)
        assert excinfo.value.row_index == len(trace) - 1
        assert excinfo.value.trace is malformed

    def test_malformed_is_value_error(self):
        assert issubclass(MalformedTraceError, ValueError)


# =====================================================================
# Padding
# =====================================================================

class TestPad:
    def test_scenario_padding(self, generator):
        table = memory_table("+++>++<.", generator)
        assert table.length == 11
        assert table.height == 16
        assert len(table.matrix) == 16
        assert table.table.is_padded
        assert as_ints(table.matrix[11:]) == [[7 + i, 1, 2, 1] for i in range(5)]

    @pytest.mark.parametrize("source", SAMPLE_PROGRAMS)
    def test_power_of_two(self, source, generator):
        table = memory_table(source, generator)
        assert is_power_of_2(len(table.matrix))
        assert len(table.matrix) >= table.length
        for row in table.matrix[table.length:]:
            assert row[MemoryTable.INTERWEAVED] == BField(1)

    def test_already_power_of_two(self, generator):
        # "+>+<" → 4행이므로 패딩하지 않는다
        table = memory_table("+>+<", generator)
        assert table.length == 4
        assert len(table.matrix) == 4

    def test_empty_program_rejected(self, generator):
        # 빈 프로그램은 종료 행 하나뿐이라 메모리 행이 없다
        _, trace, _ = run_program("")
        assert len(trace) == 1
        with pytest.raises(ValueError, match="빈 행렬"):
            MemoryTable.from_trace(trace, None, NUM_RANDOMIZERS, generator, ORDER)


# =====================================================================
# Base constraints
# =====================================================================

class TestBaseConstraints:
    def test_counts(self, generator):
        table = memory_table(",+.", generator)
        assert len(table.base_transition_constraints()) == 6
        assert len(table.base_boundary_constraints()) == 3

    @pytest.mark.parametrize("source", SAMPLE_PROGRAMS)
    def test_sample_programs(self, source, generator):
        table = memory_table(source, generator)
        assert transition_constraint_violations(
            table.base_transition_constraints(), table.matrix) == []
        assert row_constraint_violations(
            table.base_boundary_constraints(), table.matrix[0]) == []

    def test_fresh_address_must_be_zero(self, generator):
        table = memory_table("+++>++<.", generator)
        matrix = [list(row) for row in table.matrix]
        # 주소 1의 첫 행 (8번 행) 값을 조작
        matrix[8][MemoryTable.MEMORY_VALUE] = BField(5)
        violations = transition_constraint_violations(
            table.base_transition_constraints(), matrix)
        assert (7, 5) in violations

    def test_interweaved_value_fixed(self, generator):
        table = memory_table("+++>++<.", generator)
        matrix = [list(row) for row in table.matrix]
        matrix[5][MemoryTable.MEMORY_VALUE] = BField(9)
        violations = transition_constraint_violations(
            table.base_transition_constraints(), matrix)
        assert (4, 3) in violations

    def test_non_boolean_flag(self, generator):
        table = memory_table("+++>++<.", generator)
        matrix = [list(row) for row in table.matrix]
        matrix[3][MemoryTable.INTERWEAVED] = BField(2)
        violations = transition_constraint_violations(
            table.base_transition_constraints(), matrix)
        assert (2, 4) in violations

    def test_cycle_gap(self, generator):
        table = memory_table(",+.", generator)
        matrix = [list(row) for row in table.matrix]
        matrix[1][MemoryTable.CYCLE] = BField(5)
        violations = transition_constraint_violations(
            table.base_transition_constraints(), matrix)
        assert (0, 1) in violations

    def test_boundary_rejects_nonzero_start(self, generator):
        table = memory_table(",+.", generator)
        row = list(table.matrix[0])
        row[MemoryTable.MEMORY_POINTER] = BField(1)
        assert row_constraint_violations(table.base_boundary_constraints(), row) == [1]


# =====================================================================
# Extension
# =====================================================================

class TestExtension:
    @pytest.fixture(scope="class", params=SAMPLE_PROGRAMS)
    def extended(self, request, generator, challenges, initials):
        table = memory_table(request.param, generator)
        table.extend(challenges, initials)
        return table

    def test_shape(self, extended):
        assert len(extended.extended_matrix) == len(extended.matrix)
        assert all(len(row) == MemoryTable.FULL_WIDTH for row in extended.extended_matrix)
        assert all(isinstance(v, XField) for v in extended.extended_matrix[0])

    def test_base_columns_lifted(self, extended):
        for row, ext_row in zip(extended.matrix, extended.extended_matrix):
            assert [XField.lift(v) for v in row] == ext_row[:MemoryTable.BASE_WIDTH]

    def test_initial_value(self, extended, initials):
        first = extended.extended_matrix[0]
        assert first[MemoryTable.PERMUTATION] == initials.processor_memory_permutation

    def test_boolean_flag(self, extended):
        for row in extended.extended_matrix:
            flag = row[MemoryTable.INTERWEAVED]
            assert flag == XField.zero() or flag == XField.one()

    def test_transition_constraints(self, extended, challenges):
        constraints = extended.transition_constraints_ext(challenges)
        assert len(constraints) == 7
        assert transition_constraint_violations(constraints, extended.extended_matrix) == []

    def test_boundary_constraints(self, extended, challenges):
        constraints = extended.boundary_constraints_ext(challenges)
        assert row_constraint_violations(constraints, extended.extended_matrix[0]) == []

    def test_terminal_constraints(self, extended, challenges):
        constraints = extended.terminal_constraints_ext(challenges, memory_terminals(extended))
        assert len(constraints) == 1
        assert row_constraint_violations(constraints, extended.extended_matrix[-1]) == []

    def test_terminal_rejects_wrong_value(self, extended, challenges):
        terminals = Terminals(XField.zero(), XField.one())
        constraints = extended.terminal_constraints_ext(challenges, terminals)
        assert row_constraint_violations(constraints, extended.extended_matrix[-1]) == [0]

    def test_unpadded_terminal_row(self, generator, challenges, initials):
        # 패딩이 없으면 마지막 행은 합성 행이 아니다
        table = memory_table("+>+<", generator)
        assert table.matrix[-1][MemoryTable.INTERWEAVED] == BField(0)
        table.extend(challenges, initials)
        constraints = table.terminal_constraints_ext(challenges, memory_terminals(table))
        assert row_constraint_violations(constraints, table.extended_matrix[-1]) == []

    def test_codewords_lifted(self, generator, challenges, initials):
        table = memory_table(",+.", generator)
        table.table.codewords = [[BField(1), BField(2)]]
        table.extend(challenges, initials)
        assert table.table.extended_codewords == [[XField.lift(BField(1)), XField.lift(BField(2))]]
