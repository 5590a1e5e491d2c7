"""
Business services: normalization, ingestion, matching, aggregation
"""
