"""
Maternal Risk Assessment Pipeline

Aggregates a patient's antenatal records into a scoring snapshot and submits
it to the risk-scoring and factor-extraction services.
"""
__version__ = "1.0.0"
