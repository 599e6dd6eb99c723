"""
STARK 기반 모듈: 기저체(Base Field) 및 확장체(Extension Field)
================================================================

이 모듈은 Brainfuck STARK 산술화(arithmetization) 전체에서 사용되는
기본 대수적 도구를 정의한다.

**기저체 BField**:
  Goldilocks 소수체 p = 2^64 - 2^32 + 1.
  실행 트레이스의 모든 값(사이클, 메모리 포인터, 메모리 값, 명령어)은
  이 체의 원소로 표현된다.
  - p - 1 = 2^32 × 3 × 5 × 17 × 257 × 65537 → 최대 2^32차 단위근 지원
  - 곱셈군 생성자: 7

**확장체 XField**:
  3차 확장체 F_p[X] / (X³ - X + 1).
  검증자 챌린지와 순열 인자(permutation argument)의 누적곱은
  기저체보다 훨씬 큰 이 체에서 계산된다 (건전성 확보).

**리프팅(Lifting)**:
  기저체 원소 a 를 확장체 원소 (a, 0, 0) 으로 올리는 연산.
  테이블 확장(extend) 단계에서 모든 기저 값을 확장체로 옮길 때 사용한다.

사용 예시:
    >>> from zkp.stark.field import BField, XField
    >>> a = BField(3)
    >>> x = XField.lift(a)          # (3, 0, 0)
    >>> y = XField([1, 2, 3])       # 1 + 2X + 3X²
    >>> z = x * y
"""

import hashlib
import secrets

from py_ecc.fields.field_elements import FQ, FQP


# Goldilocks 소수 p = 2^64 - 2^32 + 1
FIELD_MODULUS = (1 << 64) - (1 << 32) + 1

# 곱셈군 F_p^* 의 생성자
MULTIPLICATIVE_GENERATOR = 7

# p - 1 = 2^32 · (홀수) → 지원하는 최대 2-adic 차수
TWO_ADICITY = 32

# 확장 다항식 X³ - X + 1 의 하위 계수 (c₀, c₁, c₂):
#   X³ = -(c₀ + c₁·X + c₂·X²) = X - 1
XFIELD_MODULUS_COEFFS = (1, FIELD_MODULUS - 1, 0)


# ─────────────────────────────────────────────────────────────────────
# 기저체 BField
# ─────────────────────────────────────────────────────────────────────

class BField(FQ):
    """Goldilocks 소수체 위의 원소.

    py_ecc의 FQ 클래스를 상속하여 +, -, *, /, ** 등의 필드 연산을 제공한다.

    예시:
        >>> BField(5) - BField(7) == BField(FIELD_MODULUS - 2)  # True
        >>> BField(1) / BField(3) * BField(3) == BField(1)      # True
    """
    field_modulus = FIELD_MODULUS

    def is_zero(self):
        return self.n == 0

    @property
    def value(self):
        """정규화된 정수 표현 (0 ≤ value < p)."""
        return self.n

    def inverse_or_zero(self):
        """역원을 반환한다. 0의 경우 0을 반환한다.

        프로세서 테이블의 memory_value_inverse 열에 사용된다.
        """
        if self.n == 0:
            return BField(0)
        return BField(1) / self


# ─────────────────────────────────────────────────────────────────────
# 확장체 XField
# ─────────────────────────────────────────────────────────────────────

class XField(FQP):
    """3차 확장체 F_p[X] / (X³ - X + 1) 위의 원소.

    계수 튜플 (c₀, c₁, c₂) 로 c₀ + c₁·X + c₂·X² 를 표현한다.
    py_ecc의 FQP 클래스를 상속한다 (FQ2, FQ12 와 같은 방식).

    주의:
        py_ecc FQP 는 같은 타입끼리만 덧셈/비교를 허용한다.
        기저체 원소와 섞어 쓸 때는 XField.lift 로 먼저 올려야 한다.
        (곱셈은 XField * BField 순서로 허용됨)
    """
    degree = 3
    field_modulus = FIELD_MODULUS

    def __init__(self, coeffs):
        super().__init__(coeffs, XFIELD_MODULUS_COEFFS)

    @classmethod
    def lift(cls, element):
        """기저체 원소를 확장체로 리프팅한다: a → (a, 0, 0)."""
        if isinstance(element, cls):
            return element
        return cls([int(element), 0, 0])

    def is_zero(self):
        return all(int(c) == 0 for c in self.coeffs)


# ─────────────────────────────────────────────────────────────────────
# 단위근 (Roots of Unity)
# ─────────────────────────────────────────────────────────────────────

def is_power_of_2(n):
    """n이 2의 거듭제곱인지 확인한다 (n ≥ 1)."""
    return n >= 1 and (n & (n - 1)) == 0


def get_root_of_unity(n):
    """n차 원시 단위근(primitive n-th root of unity) ω를 반환한다.

    Goldilocks 체의 경우 p - 1 = 2^32 × m (m은 홀수) 이므로
    최대 2^32차 단위근까지 지원한다.
    ω = g^((p-1)/n), g = 7 (곱셈군 생성자).

    Args:
        n: 단위근의 차수 (2의 거듭제곱, ≤ 2^32)

    Returns:
        BField: n차 원시 단위근

    Raises:
        ValueError: n이 2의 거듭제곱이 아니거나 2^32을 초과할 때

    예시:
        >>> omega = get_root_of_unity(1 << 32)
        >>> omega ** (1 << 32) == BField(1)  # True
    """
    if not is_power_of_2(n):
        raise ValueError(f"n은 2의 거듭제곱이어야 합니다: {n}")
    if n > (1 << TWO_ADICITY):
        raise ValueError(f"n은 2^{TWO_ADICITY} 이하여야 합니다: {n}")
    if n == 1:
        return BField(1)
    return BField(MULTIPLICATIVE_GENERATOR) ** ((FIELD_MODULUS - 1) // n)


# ─────────────────────────────────────────────────────────────────────
# 원소 샘플링
# ─────────────────────────────────────────────────────────────────────

def sample_xfield_elements(count, seed=None):
    """확장체 원소 count개를 샘플링한다.

    seed가 주어지면 SHA-256 으로 결정론적으로 생성한다 (테스트용).
    실제 시스템에서는 Fiat-Shamir 트랜스크립트가 챌린지를 제공한다.

    Args:
        count: 생성할 원소 수
        seed: 결정론적 생성을 위한 시드 (None이면 secrets 사용)

    Returns:
        list[XField]
    """
    elements = []
    for i in range(count):
        coeffs = []
        for j in range(XField.degree):
            if seed is not None:
                h = hashlib.sha256(f"{seed}:{i}:{j}".encode()).digest()
                coeffs.append(int.from_bytes(h, "big") % FIELD_MODULUS)
            else:
                coeffs.append(secrets.randbelow(FIELD_MODULUS))
        elements.append(XField(coeffs))
    return elements
