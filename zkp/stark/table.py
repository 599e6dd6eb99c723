"""
STARK 트레이스 테이블 컨테이너 (Trace Table)
=============================================

모든 구체 테이블(memory, processor, instruction, input, output)이 공유하는
데이터 보관 구조이다. 동작(derive, pad, extend, 제약 생성)은
zkp.stark.tables 의 각 테이블 클래스에 있다.

**기하(geometry)**:
  - length: 패딩 전 행 수
  - height: length 이상의 가장 작은 2의 거듭제곱 (패딩 후 행 수)
  - num_randomizers: 영지식(zero-knowledge) 블라인딩 행 수
  - generator, order: 평가 도메인 생성자와 그 위수
  - omicron: 트레이스 도메인(크기 height)의 생성자 = generator^(order/height)

**행렬**:
  - matrix: 기저체 행렬 (height × base_width, 패딩 후)
  - extended_matrix: 확장체 행렬 (height × full_width, extend 후)
  - codewords / extended_codewords: 저차 확장(LDE) 코드워드.
    외부 보간 단계가 codewords 를 채우고, extend 가 확장체로 리프팅한다.

**More (테이블별 보조 상태)**:
  extend 단계에서 한 번만 계산되어 종단 제약 생성에 쓰이는 스칼라.
  예: 메모리 테이블의 permutation_terminal.
"""

from zkp.stark.field import is_power_of_2


def next_power_of_2(n):
    """n 이상의 가장 작은 2의 거듭제곱을 반환한다. 빈 테이블(n = 0)은 0.

    예시:
        >>> next_power_of_2(0)  # 0
        >>> next_power_of_2(3)  # 4
        >>> next_power_of_2(4)  # 4
        >>> next_power_of_2(5)  # 8
    """
    if n <= 0:
        return 0
    if n == 1:
        return 1
    p = 1
    while p < n:
        p <<= 1
    return p


class Table:
    """트레이스 테이블의 공통 데이터 컨테이너.

    생성 시 값 저장 외의 검증은 하지 않는다.
    불변식은 테이블별 derive/pad/extend 로직이 지킨다.

    속성:
        base_width: 기저 열 수
        full_width: 확장 후 열 수 (기저 열 + 인자 열)
        length, height, num_randomizers, generator, order, name: 기하
        matrix, extended_matrix: 행 리스트
        codewords, extended_codewords: 열별 코드워드 리스트
        more: 테이블별 보조 상태 객체
    """

    def __init__(self, base_width, full_width, length, num_randomizers,
                 generator, order, name, more):
        self.base_width = base_width
        self.full_width = full_width
        self.length = length
        self.num_randomizers = num_randomizers
        self.generator = generator
        self.order = order
        self.name = name
        self.height = next_power_of_2(length)
        self.more = more

        self.matrix = []
        self.extended_matrix = []
        self.codewords = []
        self.extended_codewords = []

    @property
    def omicron(self):
        """트레이스 도메인 {1, ο, ο², ..., ο^(height-1)} 의 생성자.

        Raises:
            ValueError: 빈 테이블 (height = 0)
        """
        if self.height == 0:
            raise ValueError(f"{self.name}: 빈 테이블에는 트레이스 도메인이 없습니다")
        return self.generator ** (self.order // self.height)

    @property
    def is_padded(self):
        n = len(self.matrix)
        return n == self.height and (n == 0 or is_power_of_2(n))

    def __repr__(self):
        return (
            f"Table(name={self.name!r}, length={self.length}, height={self.height}, "
            f"base_width={self.base_width}, full_width={self.full_width})"
        )
