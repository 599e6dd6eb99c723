"""
테스트 공용 헬퍼: 예제 프로그램 실행과 테이블 구성
"""
from zkp.stark.tables import derive_tables
from zkp.stark.vm import SAMPLE_INPUT, compile_program, simulate


# ── 테스트 상수 ──
ORDER = 1 << 32
NUM_RANDOMIZERS = 2
CHALLENGE_SEED = 7
INITIALS_SEED = 11


def run_program(source, input_data=None):
    """소스를 컴파일·실행하여 (program, trace, output) 을 반환한다."""
    program = compile_program(source)
    trace, output = simulate(program, SAMPLE_INPUT if input_data is None else input_data)
    return program, trace, output


def build_tables(source, generator, challenges=None, initials=None):
    """모든 테이블을 유도·패딩하고, 챌린지가 주어지면 확장까지 수행한다."""
    program, trace, _ = run_program(source)
    tables = derive_tables(trace, program, NUM_RANDOMIZERS, generator, ORDER)
    if challenges is not None:
        for table in tables.values():
            table.extend(challenges, initials)
    return tables
