"""
iQuiz core: quiz catalog store, settings and quiz attempt flow.
"""

__version__ = "0.1.0"
