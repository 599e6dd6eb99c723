"""
Brainfuck 가상머신: 컴파일러 및 시뮬레이터
============================================

STARK 테이블이 소비하는 실행 트레이스(execution trace)를 생성한다.

**명령어 집합**:
  | 명령 | 의미                                       |
  |------|--------------------------------------------|
  | [    | mv = 0 이면 짝이 되는 ] 다음으로 점프       |
  | ]    | mv ≠ 0 이면 짝이 되는 [ 다음으로 점프       |
  | <    | mp ← mp - 1                                |
  | >    | mp ← mp + 1                                |
  | +    | mem[mp] ← mem[mp] + 1                      |
  | -    | mem[mp] ← mem[mp] - 1                      |
  | ,    | mem[mp] ← 입력 기호                        |
  | .    | 출력 ← mem[mp]                             |

**프로그램 인코딩**:
  각 명령은 ord(기호) 값의 기저체 원소 하나로 인코딩된다.
  [ 와 ] 뒤에는 점프 대상 주소를 담은 칸이 하나 더 붙는다.
    "[-]"  →  [ord('['), 5, ord('-'), ord(']'), 2]

**레지스터(Register)**:
  매 사이클의 상태 스냅샷. 프로세서 테이블의 한 행에 해당한다.
  프로그램이 끝나면 current_instruction = 0 인 마지막 행이 하나 추가된다.

사용 예시:
    >>> program = compile_program("++>,<[>+.<-]")
    >>> trace, output = simulate(program, [BField(97)])
"""

import logging

from zkp.stark.field import BField


logger = logging.getLogger(__name__)

INSTRUCTIONS = "[]<>+-,."


class Register:
    """한 사이클의 VM 레지스터 스냅샷.

    모든 값은 BField 원소이다. 생성 후 변경하지 않는다.
    """

    FIELDS = (
        "cycle",
        "instruction_pointer",
        "current_instruction",
        "next_instruction",
        "memory_pointer",
        "memory_value",
        "memory_value_inverse",
    )

    def __init__(self, cycle=0, instruction_pointer=0, current_instruction=0,
                 next_instruction=0, memory_pointer=0, memory_value=0,
                 memory_value_inverse=0):
        self.cycle = BField(cycle)
        self.instruction_pointer = BField(instruction_pointer)
        self.current_instruction = BField(current_instruction)
        self.next_instruction = BField(next_instruction)
        self.memory_pointer = BField(memory_pointer)
        self.memory_value = BField(memory_value)
        self.memory_value_inverse = BField(memory_value_inverse)

    def to_row(self):
        """프로세서 테이블 행 [cycle, ip, ci, ni, mp, mv, mvi] 로 변환한다."""
        return [getattr(self, name) for name in Register.FIELDS]

    def __eq__(self, other):
        if not isinstance(other, Register):
            return False
        return self.to_row() == other.to_row()

    __hash__ = None

    def __repr__(self):
        values = ", ".join(f"{name}={int(getattr(self, name))}" for name in Register.FIELDS)
        return f"Register({values})"


def compile_program(source):
    """Brainfuck 소스를 기저체 원소 리스트로 컴파일한다.

    명령어 집합에 없는 문자는 무시한다 (주석).

    Args:
        source: Brainfuck 소스 문자열

    Returns:
        list[BField]: 프로그램

    Raises:
        ValueError: 괄호 짝이 맞지 않을 때

    예시:
        >>> [int(x) for x in compile_program("[-]")]
        [91, 5, 45, 93, 2]
    """
    program = []
    stack = []
    for symbol in source:
        if symbol not in INSTRUCTIONS:
            continue
        program.append(BField(ord(symbol)))
        if symbol == "[":
            # 점프 대상은 짝이 되는 ] 를 만났을 때 채운다
            program.append(BField(0))
            stack.append(len(program) - 2)
        elif symbol == "]":
            if not stack:
                raise ValueError(f"짝이 없는 ']' 입니다 (주소 {len(program) - 1})")
            start = stack.pop()
            program.append(BField(start + 2))
            program[start + 1] = BField(len(program))
    if stack:
        raise ValueError(f"짝이 없는 '[' 입니다 (주소 {stack[-1]})")
    return program


def simulate(program, input_data=None):
    """프로그램을 실행하여 레지스터 트레이스와 출력을 반환한다.

    Args:
        program: compile_program 의 결과
        input_data: ',' 명령이 차례로 읽을 BField 리스트

    Returns:
        tuple: (trace, output)
            - trace: list[Register]: 매 사이클 스냅샷 + 종료 행(current_instruction = 0)
            - output: list[BField]: '.' 명령이 출력한 값

    Raises:
        ValueError: 입력이 부족할 때
    """
    input_data = list(input_data or [])
    memory = {}
    output = []
    trace = []

    cycle = 0
    ip = 0
    mp = BField(0)
    input_counter = 0

    def fetch(address):
        return program[address] if address < len(program) else BField(0)

    while ip < len(program):
        mv = memory.get(mp.n, BField(0))
        trace.append(Register(
            cycle=cycle,
            instruction_pointer=ip,
            current_instruction=fetch(ip),
            next_instruction=fetch(ip + 1),
            memory_pointer=mp,
            memory_value=mv,
            memory_value_inverse=mv.inverse_or_zero(),
        ))

        instruction = chr(program[ip].n)
        if instruction == "[":
            ip = program[ip + 1].n if mv.is_zero() else ip + 2
        elif instruction == "]":
            ip = ip + 2 if mv.is_zero() else program[ip + 1].n
        elif instruction == "<":
            mp = mp - BField(1)
            ip += 1
        elif instruction == ">":
            mp = mp + BField(1)
            ip += 1
        elif instruction == "+":
            memory[mp.n] = mv + BField(1)
            ip += 1
        elif instruction == "-":
            memory[mp.n] = mv - BField(1)
            ip += 1
        elif instruction == ",":
            if input_counter >= len(input_data):
                raise ValueError(f"입력이 부족합니다 (사이클 {cycle})")
            memory[mp.n] = BField(input_data[input_counter])
            input_counter += 1
            ip += 1
        elif instruction == ".":
            output.append(mv)
            ip += 1
        cycle += 1

    # 종료 행: 마지막 명령 실행 후의 상태 (current_instruction = 0)
    mv = memory.get(mp.n, BField(0))
    trace.append(Register(
        cycle=cycle,
        instruction_pointer=ip,
        current_instruction=0,
        next_instruction=0,
        memory_pointer=mp,
        memory_value=mv,
        memory_value_inverse=mv.inverse_or_zero(),
    ))

    logger.debug("simulated %d cycles, %d outputs", cycle, len(output))
    return trace, output


# ─────────────────────────────────────────────────────────────────────
# 예제 프로그램
# ─────────────────────────────────────────────────────────────────────

# 모든 예제는 메모리를 최소 한 번 수정하며, 포인터가 0 아래로 내려가지 않는다.
SAMPLE_PROGRAMS = [
    "++>,<[>+.<-]",
    ",+.",
    "+++>++<.",
    "++++[>++<-]>.",
    "+>+>+<<[-]>[-<+>]<.",
    ">>,<<+[->+<]>.>.",
]

# 예제 프로그램이 읽는 입력
SAMPLE_INPUT = [BField(97), BField(98), BField(99)]
