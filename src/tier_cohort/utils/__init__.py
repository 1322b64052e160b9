"""
Utils package initialization
"""

from .shared_functions import (
    configure_logging,
    save_results,
    save_plot,
    load_score_table,
)
