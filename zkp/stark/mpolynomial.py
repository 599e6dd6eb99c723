"""
STARK 기반 모듈: 다변수 다항식(Multivariate Polynomial)
=========================================================

AIR 제약(constraint)은 트레이스 행(row)의 열(column)들을 변수로 하는
다변수 다항식으로 표현된다.

**희소(sparse) 표현**:
  지수 튜플 → 계수 딕셔너리.
    3·x₀²·x₂ + 5  →  {(2, 0, 1): 3, (0, 0, 0): 5}
  모든 항은 같은 변수 개수(num_variables)를 가진다.

**변수 개수 규약**:
  - 전이(transition) 제약: 2 × width 변수 (현재 행 ‖ 다음 행)
  - 경계(boundary) / 종단(terminal) 제약: width 변수 (한 행)

**체 독립성**:
  계수 타입은 BField 또는 XField 이다. 한 다항식 안의 모든 계수는
  같은 체에 속한다. lift_coefficients_to_xfield 로 기저체 다항식을
  확장체 다항식으로 올린다.

사용 예시:
    >>> from zkp.stark.field import BField
    >>> x, y = MPolynomial.variables(2, BField)
    >>> p = x * y - MPolynomial.constant(BField(1), 2)
    >>> p.evaluate([BField(2), BField(3)])  # BField(5)
"""

from zkp.stark.field import XField


def _to_field(value, field):
    """정수/기저체 원소를 field 의 원소로 변환한다."""
    if isinstance(value, field):
        return value
    if field is XField:
        return XField.lift(value)
    return field(value)


class MPolynomial:
    """체 위의 다변수 다항식.

    속성:
        dictionary: {지수 튜플: 계수} (계수 0인 항은 저장하지 않음)
        num_variables: 변수 개수
        field: 계수 체 클래스 (BField 또는 XField)
    """

    def __init__(self, dictionary, num_variables, field):
        self.num_variables = num_variables
        self.field = field
        zero = field.zero()
        self.dictionary = {}
        for exponents, coeff in dictionary.items():
            if len(exponents) != num_variables:
                raise ValueError(
                    f"지수 튜플 길이 {len(exponents)} != 변수 개수 {num_variables}"
                )
            coeff = _to_field(coeff, field)
            if coeff != zero:
                self.dictionary[tuple(exponents)] = coeff

    @classmethod
    def zero(cls, num_variables, field):
        """영 다항식."""
        return cls({}, num_variables, field)

    @classmethod
    def constant(cls, value, num_variables):
        """상수 다항식. 체는 value 의 타입에서 정해진다."""
        return cls({(0,) * num_variables: value}, num_variables, type(value))

    @classmethod
    def variables(cls, num_variables, field):
        """변수 x₀, x₁, ..., x_{n-1} 을 각각 다항식으로 반환한다."""
        one = field.one()
        result = []
        for i in range(num_variables):
            exponents = [0] * num_variables
            exponents[i] = 1
            result.append(cls({tuple(exponents): one}, num_variables, field))
        return result

    def is_zero(self):
        return not self.dictionary

    @property
    def degree(self):
        """전체 차수(total degree). 영 다항식은 -1."""
        if not self.dictionary:
            return -1
        return max(sum(exponents) for exponents in self.dictionary)

    def _coerce(self, other):
        if isinstance(other, MPolynomial):
            if other.num_variables != self.num_variables:
                raise ValueError(
                    f"변수 개수가 다릅니다: {self.num_variables} != {other.num_variables}"
                )
            if other.field is not self.field:
                raise ValueError(
                    f"계수 체가 다릅니다: {self.field.__name__} != {other.field.__name__}"
                )
            return other
        return MPolynomial.constant(_to_field(other, self.field), self.num_variables)

    def __add__(self, other):
        other = self._coerce(other)
        result = dict(self.dictionary)
        for exponents, coeff in other.dictionary.items():
            if exponents in result:
                result[exponents] = result[exponents] + coeff
            else:
                result[exponents] = coeff
        return MPolynomial(result, self.num_variables, self.field)

    def __radd__(self, other):
        return self.__add__(other)

    def __neg__(self):
        return MPolynomial(
            {k: -v for k, v in self.dictionary.items()}, self.num_variables, self.field
        )

    def __sub__(self, other):
        return self.__add__(-self._coerce(other))

    def __rsub__(self, other):
        return self._coerce(other).__sub__(self)

    def __mul__(self, other):
        other = self._coerce(other)
        result = {}
        for exp_a, coeff_a in self.dictionary.items():
            for exp_b, coeff_b in other.dictionary.items():
                exponents = tuple(i + j for i, j in zip(exp_a, exp_b))
                product = coeff_a * coeff_b
                if exponents in result:
                    result[exponents] = result[exponents] + product
                else:
                    result[exponents] = product
        return MPolynomial(result, self.num_variables, self.field)

    def __rmul__(self, other):
        return self.__mul__(other)

    def __eq__(self, other):
        if not isinstance(other, MPolynomial):
            return False
        if other.num_variables != self.num_variables or other.field is not self.field:
            return False
        if self.dictionary.keys() != other.dictionary.keys():
            return False
        return all(self.dictionary[k] == other.dictionary[k] for k in self.dictionary)

    __hash__ = None

    def __repr__(self):
        if not self.dictionary:
            return "MPoly(0)"
        terms = []
        for exponents, coeff in sorted(self.dictionary.items()):
            factors = [
                f"x{i}" if e == 1 else f"x{i}^{e}"
                for i, e in enumerate(exponents) if e > 0
            ]
            terms.append("*".join([str(coeff)] + factors))
        return "MPoly(" + " + ".join(terms) + ")"

    def evaluate(self, point):
        """점 point 에서 다항식을 평가한다.

        변수별 거듭제곱을 한 번씩만 계산하여 재사용한다.

        Args:
            point: 길이 num_variables 의 체 원소 리스트
                   (계수와 같은 체에 속해야 한다)

        Returns:
            체 원소: p(point)
        """
        if len(point) != self.num_variables:
            raise ValueError(
                f"평가 점의 길이 {len(point)} != 변수 개수 {self.num_variables}"
            )
        powers = [{0: self.field.one(), 1: x} for x in point]
        result = self.field.zero()
        for exponents, coeff in self.dictionary.items():
            term = coeff
            for i, e in enumerate(exponents):
                if e == 0:
                    continue
                cache = powers[i]
                if e not in cache:
                    cache[e] = point[i] ** e
                term = term * cache[e]
            result = result + term
        return result


def lift_coefficients_to_xfield(polynomial):
    """기저체 다항식의 계수를 확장체로 리프팅한다.

    기저체 전이 제약을 확장 테이블에서 그대로 재사용할 때 사용한다.
    """
    return MPolynomial(
        {k: XField.lift(v) for k, v in polynomial.dictionary.items()},
        polynomial.num_variables,
        XField,
    )
