import os
import tempfile
from datetime import datetime, timedelta

import pytest

# テスト中のログはリポジトリ外に出す
os.environ.setdefault(
    "YIELD_DAO_LOG_DIR", os.path.join(tempfile.gettempdir(), "yield_dao_test_logs")
)


class FakeClock:
    """テスト用の手動で進める時計"""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 12, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float):
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()
