from __future__ import annotations

from ._core_base import *  # noqa: F401,F403
from ._core_build_list import *  # noqa: F401,F403
from ._core_checker import *  # noqa: F401,F403
from ._core_compare import *  # noqa: F401,F403
from ._core_docs import *  # noqa: F401,F403
from ._core_exclusions import *  # noqa: F401,F403
from ._core_extract import *  # noqa: F401,F403
from ._core_orchestration import *  # noqa: F401,F403
from ._core_report import *  # noqa: F401,F403
