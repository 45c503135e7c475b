"""
Pytest configuration for key level tests.
"""

import logging

import pytest

from keylevels.config import KeyLevelsConfig, LevelVisibility
from keylevels.utils import logger as logger_module
from keylevels.utils.logger import KeyLevelsLogger
from tests.factories import make_aux, make_bar, make_step


@pytest.fixture
def bar_factory():
    """Factory for primary bars."""
    return make_bar


@pytest.fixture
def aux_factory():
    """Factory for auxiliary timeframe views."""
    return make_aux


@pytest.fixture
def step_factory():
    """Factory for tracker steps (UTC calendar fields)."""
    return make_step


@pytest.fixture
def hidden_levels() -> LevelVisibility:
    """Visibility with every timeframe and weekday level switched off."""
    return LevelVisibility(
        daily_open=False,
        prev_day_hl=False,
        weekly_open=False,
        prev_week_hl=False,
        monthly_open=False,
        prev_month_hl=False,
        yearly_open=False,
        current_year_hl=False,
        weekday_range=False,
    )


@pytest.fixture
def no_warmup_config(hidden_levels) -> KeyLevelsConfig:
    """Config with no warm-up, no levels and no sessions."""
    return KeyLevelsConfig(warmup_bars=0, visibility=hidden_levels, sessions=())


@pytest.fixture
def reset_logging():
    """Drop handlers added by setup_logger() once the test is done."""
    yield
    logger = logging.getLogger("keylevels")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    KeyLevelsLogger._instance = None
    KeyLevelsLogger._initialized = False
    logger_module._logger = None
