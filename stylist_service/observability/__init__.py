# Observability module
from stylist_service.observability.logger import log_request, is_logging_enabled
from stylist_service.observability.metrics import (
    increment_request,
    record_provider_call,
    record_outfits,
    record_partial_batch,
    estimate_cost,
    get_metrics,
    reset_metrics,
)
