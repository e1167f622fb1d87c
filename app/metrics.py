"""Prometheus metrics definitions for gbp-dashboard.

Exposes metrics for:
1. HTTP API metrics (requests, latency, errors)
2. Google API client metrics (calls, latency, errors, fallbacks)
3. Content generation (OpenAI) metrics
4. Background job metrics (runs, duration, errors)
5. Automation outcome metrics (auto-replies, auto-posts)
"""
from prometheus_client import Counter, Histogram, Gauge, Info

# =============================================================================
# HTTP API METRICS
# =============================================================================

HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status_code"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

HTTP_REQUESTS_IN_PROGRESS = Gauge(
    "http_requests_in_progress",
    "Number of HTTP requests currently being processed",
    ["method", "endpoint"],
)

# =============================================================================
# GOOGLE API CLIENT METRICS
# =============================================================================

GOOGLE_API_CALLS_TOTAL = Counter(
    "google_api_calls_total",
    "Total number of Google API calls",
    ["endpoint", "status"],  # status: success, error
)

GOOGLE_API_CALL_DURATION_SECONDS = Histogram(
    "google_api_call_duration_seconds",
    "Google API call latency in seconds",
    ["endpoint"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

GOOGLE_API_ERRORS_TOTAL = Counter(
    "google_api_errors_total",
    "Total number of Google API errors",
    ["endpoint", "error_type"],  # error_type: http_error, timeout, connection_error
)

# Responses served from mock or simulated data instead of Google
FALLBACK_RESPONSES_TOTAL = Counter(
    "fallback_responses_total",
    "Total number of proxy responses served from fallback data",
    ["endpoint", "kind"],  # kind: mock, simulated, empty
)

# =============================================================================
# CONTENT GENERATION METRICS
# =============================================================================

OPENAI_API_CALLS_TOTAL = Counter(
    "openai_api_calls_total",
    "Total number of OpenAI API calls",
    ["endpoint", "status"],
)

OPENAI_API_CALL_DURATION_SECONDS = Histogram(
    "openai_api_call_duration_seconds",
    "OpenAI API call latency in seconds",
    ["endpoint"],
    buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0),
)

CONTENT_GENERATION_RESULTS = Counter(
    "content_generation_results_total",
    "Content generation outcomes",
    ["kind", "source"],  # kind: post, review_reply; source: llm, template
)

# =============================================================================
# BACKGROUND JOB METRICS
# =============================================================================

BACKGROUND_JOB_RUNS_TOTAL = Counter(
    "background_job_runs_total",
    "Total number of background job runs",
    ["job_name", "status"],  # status: success, error, skipped
)

BACKGROUND_JOB_DURATION_SECONDS = Histogram(
    "background_job_duration_seconds",
    "Background job execution duration in seconds",
    ["job_name"],
    buckets=(0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0, 120.0),
)

BACKGROUND_JOB_LAST_RUN_TIMESTAMP = Gauge(
    "background_job_last_run_timestamp_seconds",
    "Unix timestamp of the last successful job run",
    ["job_name"],
)

# =============================================================================
# AUTOMATION METRICS
# =============================================================================

REVIEW_AUTO_REPLY_RESULTS = Counter(
    "review_auto_reply_results_total",
    "Outcomes of review auto-reply processing",
    ["result"],  # result: replied, skipped_criteria, skipped_has_reply, error
)

AUTO_POST_RESULTS = Counter(
    "auto_post_results_total",
    "Outcomes of scheduled auto-posts",
    ["result", "trigger"],  # result: success, error; trigger: scheduled, manual
)

AUTOMATION_ACTIVE_CONFIGURATIONS = Gauge(
    "automation_active_configurations",
    "Number of enabled automation configurations",
    ["kind"],  # kind: auto_posting, review_reply
)

# =============================================================================
# APPLICATION INFO
# =============================================================================

APP_INFO = Info(
    "gbpdashboard",
    "gbp-dashboard application information",
)

APP_INFO.info({
    "version": "1.0.0",
    "description": "Google Business Profile dashboard backend",
})
