"""
Root conftest shared by the airframe and capability test suites.

Puts the project root on sys.path so both top-level packages import
without an editable install.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


@pytest.fixture
def mock_logger():
    """structlog-shaped logger: ``bind()`` returns itself, every level is a MagicMock.

    Components call ``get_component_logger(name, logger)``, which binds the
    component name, so assertions can be made on ``mock_logger.info`` etc.
    """
    logger = MagicMock()
    logger.bind.return_value = logger
    return logger
