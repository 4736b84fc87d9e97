import pytest


class ScriptedRandom:
    """
    Stand-in for random.Random that replays fixed draws.

    `choices` are indices into whatever sequence choice() is given;
    `randoms` are the floats random() returns. When a script runs out,
    choice() picks the first element and random() returns 0.0 (a 2).
    """

    def __init__(self, choices=(), randoms=()):
        self.choices = list(choices)
        self.randoms = list(randoms)

    def choice(self, seq):
        index = self.choices.pop(0) if self.choices else 0
        return seq[index]

    def random(self):
        return self.randoms.pop(0) if self.randoms else 0.0


@pytest.fixture
def scripted():
    return ScriptedRandom


@pytest.fixture
def sample_grid():
    return [
        [2, 2, None, 4],
        [None, None, None, None],
        [2, None, None, 2],
        [4, 4, 4, 4],
    ]


@pytest.fixture
def locked_grid():
    # checkerboard of 4s and 2s: full, no equal neighbours
    return [[4 if (i + j) % 2 == 0 else 2 for j in range(4)] for i in range(4)]
