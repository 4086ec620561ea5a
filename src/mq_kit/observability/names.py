# src/mq_kit/observability/names.py

"""Standard metric names for mq-kit observability.

Use these constants instead of hardcoded strings for consistency
across the codebase.

Note: All duration metrics are in milliseconds by convention.
Units are handled by the metrics backend (e.g., converted to seconds in Prometheus).
"""

# ============================================================================
# Indexing Metrics
# ============================================================================

# Duration
INDEX_DURATION = "index_duration"

# Counters
INDEX_DOCUMENTS_TOTAL = "index_documents_total"

# Gauges
INDEX_SECTIONS = "index_sections"


# ============================================================================
# Query Metrics
# ============================================================================

# Duration
QUERY_DURATION = "query_duration"

# Counters
QUERY_REQUESTS_TOTAL = "query_requests_total"
QUERY_ERRORS_TOTAL = "query_errors_total"


# ============================================================================
# Search Metrics
# ============================================================================

# Duration
SEARCH_DURATION = "search_duration"

# Counters
SEARCH_MATCHES_TOTAL = "search_matches_total"


# ============================================================================
# Directory Metrics
# ============================================================================

# Counters (files accumulate over a scan)
DIRECTORY_FILES_TOTAL = "directory_files_total"
DIRECTORY_ERRORS_TOTAL = "directory_errors_total"
