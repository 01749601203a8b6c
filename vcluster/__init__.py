"""
vcluster executor

StatefulSet synthesis and reconciliation for the roles of a virtual cluster
resource. See vcluster.services.orchestration.kubernetes for the entry points.
"""

import logging

from .config import get_settings

__version__ = "0.1.0"


def configure_logging() -> None:
    """Apply the configured log level to the root logger."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
