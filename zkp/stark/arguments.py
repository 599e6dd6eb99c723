"""
테이블 간 인자(argument) 파라미터: 챌린지, 초기값, 종단값
==========================================================

모든 테이블이 공유하는 검증자 챌린지와 순열 인자의 초기값/종단값을
이름 있는 구조로 정의한다.

**챌린지 (11개)**:
  | 인덱스 | 이름  | 사용처                                   |
  |--------|-------|------------------------------------------|
  | 0,1,2  | a,b,c | 명령어 순열 인자의 열 가중치 (ip, ci, ni) |
  | 3,4,5  | d,e,f | 메모리 순열 인자의 열 가중치 (clk, mp, mv)|
  | 6      | alpha | 명령어 순열 인자의 평행이동 값            |
  | 7      | beta  | 메모리 순열 인자의 평행이동 값            |
  | 8      | gamma | 입력 평가 인자                            |
  | 9      | delta | 출력 평가 인자                            |
  | 10     | eta   | 프로그램 평가 인자                        |

**순열 인자 (2개)**:
  0. processor ↔ instruction (명령어 순열)
  1. processor ↔ memory      (메모리 순열)

**평가 인자 (2개)**:
  입력 테이블(gamma), 출력 테이블(delta). 종단값은 EvaluationTerminals 로 받는다.

인덱스가 아니라 이름으로 접근하여 전사(transcription) 실수를 막는다.
원시 튜플은 시스템 경계에서 from_sequence 로 한 번만 변환한다.

사용 예시:
    >>> challenges = Challenges.from_sequence(sample_xfield_elements(11, seed=1))
    >>> challenges.beta
"""

from collections import namedtuple

from zkp.stark.field import XField, sample_xfield_elements


EXTENSION_CHALLENGE_COUNT = 11
PERMUTATION_ARGUMENTS_COUNT = 2
TERMINAL_COUNT = 2
EVALUATION_ARGUMENTS_COUNT = 2


class _NamedArguments:
    """이름 있는 확장체 튜플의 공통 생성 로직."""
    __slots__ = ()

    @classmethod
    def from_sequence(cls, values):
        """원시 시퀀스를 이름 있는 구조로 변환한다.

        Raises:
            ValueError: 길이가 맞지 않거나 XField 가 아닌 원소가 있을 때
        """
        values = list(values)
        if len(values) != len(cls._fields):
            raise ValueError(
                f"{cls.__name__} 는 {len(cls._fields)}개 원소가 필요합니다: {len(values)}개 주어짐"
            )
        for name, value in zip(cls._fields, values):
            if not isinstance(value, XField):
                raise ValueError(f"{cls.__name__}.{name} 는 XField 여야 합니다: {type(value).__name__}")
        return cls(*values)

    @classmethod
    def sample(cls, seed=None):
        """무작위 값으로 채운다 (테스트용)."""
        return cls.from_sequence(sample_xfield_elements(len(cls._fields), seed=seed))


class Challenges(_NamedArguments, namedtuple(
        "Challenges", ["a", "b", "c", "d", "e", "f", "alpha", "beta", "gamma", "delta", "eta"])):
    """모든 테이블이 공유하는 11개의 검증자 챌린지."""
    __slots__ = ()


class Initials(_NamedArguments, namedtuple(
        "Initials", ["processor_instruction_permutation", "processor_memory_permutation"])):
    """순열 인자별 누적곱의 시작값."""
    __slots__ = ()


class Terminals(_NamedArguments, namedtuple(
        "Terminals", ["processor_instruction_permutation", "processor_memory_permutation"])):
    """순열 인자별 누적곱이 도달해야 하는 종단값."""
    __slots__ = ()


class EvaluationTerminals(_NamedArguments, namedtuple(
        "EvaluationTerminals", ["input_evaluation", "output_evaluation"])):
    """입출력 평가 인자의 종단값.

    공개된 입력/출력 기호로부터 검증자가 직접 계산한다 (evaluation_terminal 참고).
    """
    __slots__ = ()
