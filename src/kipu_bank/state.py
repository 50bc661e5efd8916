"""Application state container."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .settings import BankSettings


@dataclass
class AppState:
    """Container for application-wide state and dependencies.

    Passed to the deployment and client flows to avoid global state and
    enable testing.
    """

    settings: BankSettings
    logger: logging.Logger
