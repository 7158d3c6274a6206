from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Iterator

import pytest


@pytest.fixture
def executor() -> Iterator[ThreadPoolExecutor]:
    pool = ThreadPoolExecutor(max_workers=4, thread_name_prefix="test-lookup")
    yield pool
    pool.shutdown(wait=True)
