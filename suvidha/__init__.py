"""Suvidha citizen-services assistant core.

Eligibility scoring for government schemes and retrieval-grounded chat with
function calling against the citizen-services data store.
"""

__version__ = "1.0.0"
