"""
wardcare - clinical decision support and investigation workflow core.

Patient categorization, bedside scoring systems and the laboratory
investigation workflow used by the surgical and ward EMR.
"""

__version__ = "0.3.0"
