"""
Broadband: H3 hex summaries and quality scores from FCC availability data.

Pipeline loads per-location fixed-broadband availability records (one CSV
per delivery technology) into DuckDB, aggregates them into H3 hexagons
(resolution 8), and scores each hex 0-100 from its max download and
upload speeds, provider count and technology variety.
"""

__version__ = "0.1.0"
