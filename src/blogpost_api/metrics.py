"""Shared OTel metrics instruments for the service."""

from opentelemetry import metrics

METER_NAME = "blogpost_api"

meter = metrics.get_meter(METER_NAME)

posts_created_total = meter.create_counter(
    name="posts_created_total",
    description="Total blog posts created through the API",
    unit="1",
)

posts_updated_total = meter.create_counter(
    name="posts_updated_total",
    description="Total blog posts updated through the API",
    unit="1",
)

posts_deleted_total = meter.create_counter(
    name="posts_deleted_total",
    description="Total blog posts deleted through the API",
    unit="1",
)

store_errors_total = meter.create_counter(
    name="store_errors_total",
    description="Requests that failed because the post store failed",
    unit="1",
)
