import sys
import os
import pytest

# 프로젝트 루트를 sys.path에 추가
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from zkp.stark.arguments import Challenges, Initials
from zkp.stark.field import get_root_of_unity

from trace_helpers import CHALLENGE_SEED, INITIALS_SEED, ORDER


@pytest.fixture(scope="session")
def generator():
    """2^32차 원시 단위근."""
    return get_root_of_unity(ORDER)


@pytest.fixture(scope="session")
def challenges():
    return Challenges.sample(seed=CHALLENGE_SEED)


@pytest.fixture(scope="session")
def initials():
    return Initials.sample(seed=INITIALS_SEED)
